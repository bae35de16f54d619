"""
Path utilities for StoryMate.

Handles path resolution for both development mode and frozen (PyInstaller) executables.
- In development: paths are relative to the project root
- When frozen: paths are relative to the executable location

External data (db/, config.json) lives NEXT TO the executable, not bundled inside.
"""

import sys
from pathlib import Path


def get_app_dir() -> Path:
    """
    Get the application directory.
    
    - In development: the project root (parent of storymate/)
    - When frozen: the directory containing the executable
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent.parent


def get_db_dir() -> Path:
    """Get the directory holding saved flowcharts (one JSON file per project)."""
    return get_app_dir() / "db" / "flowcharts"


def get_config_path() -> Path:
    """Get the path to the config file (storage backend, API url, etc.)."""
    return get_app_dir() / "config.json"


def ensure_db_dir() -> Path:
    """
    Ensure the flowchart directory exists, creating it if necessary.
    Returns the path to the directory.
    """
    db_dir = get_db_dir()
    db_dir.mkdir(parents=True, exist_ok=True)
    return db_dir
