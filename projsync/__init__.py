"""projsync - mirror project folders against Dropbox."""

from .api import DropboxClient
from .config import configure_logging
from .exceptions import (
    ConfigError,
    ProjectNotFoundError,
    ProjSyncError,
    StorageAuthenticationError,
    StorageDownloadError,
    StorageError,
    StorageInvalidResponseError,
    StorageNetworkError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageRateLimitError,
    StorageUploadError,
)
from .projects import ProjectRepository
from .utils import ContentHasher, content_hash, hash_file

__version__ = "0.1.0"

__all__ = [
    "DropboxClient",
    "ProjectRepository",
    "ContentHasher",
    "content_hash",
    "hash_file",
    "configure_logging",
    "ProjSyncError",
    "ConfigError",
    "ProjectNotFoundError",
    "StorageError",
    "StorageAuthenticationError",
    "StorageDownloadError",
    "StorageInvalidResponseError",
    "StorageNetworkError",
    "StorageNotFoundError",
    "StoragePermissionError",
    "StorageRateLimitError",
    "StorageUploadError",
]
