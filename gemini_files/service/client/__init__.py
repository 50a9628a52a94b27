"""
Gemini Files API client.
"""

from .files_client import (
    DEFAULT_BASE_URL,
    FilesClientConfig,
    GeminiFilesClient,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "FilesClientConfig",
    "GeminiFilesClient",
]
