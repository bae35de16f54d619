"""
Backend Factory for StoryMate.

Creates the storage backend selected by the settings from storymate.config.
"""

import logging
from typing import Any, Dict, Optional

from storymate.storage.file_backend import FileBackend
from storymate.storage.http_backend import HttpBackend

logger = logging.getLogger(__name__)

# Default backend type
DEFAULT_BACKEND = "file"

BACKEND_TYPES = ("file", "http")


def get_backend_type(settings: Dict[str, Any]) -> str:
    """Return 'file' or 'http'; unknown values fall back to the default."""
    backend_type = str(settings.get("storage_backend") or DEFAULT_BACKEND).lower()
    if backend_type not in BACKEND_TYPES:
        logger.warning(f"Unknown storage backend '{backend_type}', using '{DEFAULT_BACKEND}'")
        return DEFAULT_BACKEND
    return backend_type


def create_backend(settings: Dict[str, Any], force_backend: Optional[str] = None, session=None):
    """
    Create a storage backend instance.
    
    Args:
        settings: Effective settings (see storymate.config.get_settings)
        force_backend: Override the configured backend type
        session: Optional requests.Session for the HTTP backend
        
    Returns:
        FileBackend or HttpBackend
    """
    backend_type = force_backend or get_backend_type(settings)
    
    if backend_type == "http":
        return HttpBackend(
            base_url=settings["api_url"],
            token=settings.get("api_token"),
            session=session,
            timeout=float(settings.get("api_timeout") or 10.0),
        )
    
    return FileBackend(settings["data_dir"])
