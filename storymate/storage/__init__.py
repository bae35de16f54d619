"""
Storage backend abstraction for StoryMate.

Supports multiple storage backends:
- FileBackend: Local JSON file per project (default)
- HttpBackend: StoryMate REST API
"""

from storymate.storage.protocol import FlowchartStore
from storymate.storage.file_backend import FileBackend
from storymate.storage.http_backend import HttpBackend
from storymate.storage.factory import create_backend, get_backend_type

__all__ = [
    'FlowchartStore',
    'FileBackend',
    'HttpBackend',
    'create_backend',
    'get_backend_type',
]
