"""
Configuration management for StoryMate.

Handles persistent configuration including:
- Which storage backend the editor saves to ('file' or 'http')
- API base URL and bearer token for the HTTP backend
- Local data directory and log level

Config is stored in config.json next to the executable/project root.
Environment variables override the file (see ENV_OVERRIDES).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from storymate.paths import get_config_path, get_db_dir

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage_backend": "file",
    "api_url": "http://localhost:8080/api",
    "api_token": None,
    "api_timeout": 10.0,
    "data_dir": None,
    "log_level": "INFO",
}

# config key -> environment variable
ENV_OVERRIDES = {
    "storage_backend": "STORYMATE_STORAGE",
    "api_url": "STORYMATE_API_URL",
    "api_token": "STORYMATE_API_TOKEN",
    "data_dir": "STORYMATE_DATA_DIR",
    "log_level": "STORYMATE_LOG_LEVEL",
}


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json, returning {} when missing or unreadable."""
    config_path = Path(config_path) if config_path else get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to read config {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = Path(config_path) if config_path else get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def get_settings(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Resolve the effective settings.
    
    Priority:
    1. Environment variables (STORYMATE_*)
    2. Stored in config.json
    3. DEFAULT_CONFIG
    """
    settings = dict(DEFAULT_CONFIG)
    settings.update(load_config(config_path))
    
    for key, env_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            settings[key] = value
    
    if not settings.get("data_dir"):
        settings["data_dir"] = str(get_db_dir())
    settings["api_timeout"] = float(settings.get("api_timeout") or DEFAULT_CONFIG["api_timeout"])
    settings["storage_backend"] = str(settings["storage_backend"]).lower()
    return settings

