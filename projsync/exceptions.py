"""Custom exceptions for projsync."""


class ProjSyncError(Exception):
    """Base exception for all projsync errors."""


class ConfigError(ProjSyncError):
    """Raised when required configuration is missing or invalid."""


class ProjectNotFoundError(ProjSyncError):
    """Raised when a project folder does not exist in its repository."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No such project: {name}")


class StorageError(ProjSyncError):
    """Base exception for storage backend failures."""


class StorageAuthenticationError(StorageError):
    """Raised when the access token is missing, invalid or expired."""


class StoragePermissionError(StorageError):
    """Raised when the token lacks access to the requested path."""


class StorageNotFoundError(StorageError):
    """Raised when a remote path does not exist."""

    def __init__(self, message: str = "Remote path not found", path: str = ""):
        self.path = path
        super().__init__(message)


class StorageRateLimitError(StorageError):
    """Raised when the backend throttles requests."""

    def __init__(self, message: str, retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class StorageNetworkError(StorageError):
    """Raised on connection failures and timeouts."""


class StorageInvalidResponseError(StorageError):
    """Raised when the backend returns something that is not valid JSON."""


class StorageUploadError(StorageError):
    """Raised when an upload cannot be completed."""


class StorageDownloadError(StorageError):
    """Raised when a download cannot be completed."""
