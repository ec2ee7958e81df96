"""Environment-based configuration for projsync."""

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_API_URL = "https://api.dropboxapi.com/2"
DEFAULT_CONTENT_URL = "https://content.dropboxapi.com/2"

TOKEN_ENV = "PROJSYNC_DROPBOX_TOKEN"
API_URL_ENV = "PROJSYNC_API_URL"
CONTENT_URL_ENV = "PROJSYNC_CONTENT_URL"
PROJECTS_DIR_ENV = "PROJSYNC_PROJECTS_DIR"
DEBUG_ENV = "PROJSYNC_DEBUG"

_TRUTHY = {"1", "true", "yes", "on"}


class Config:
    """Configuration read from environment variables.

    Values are looked up on every access so that tests and callers can
    change the environment without rebuilding the object.
    """

    @property
    def token(self) -> Optional[str]:
        """Dropbox access token."""
        value = os.environ.get(TOKEN_ENV, "").strip()
        return value or None

    @property
    def api_url(self) -> str:
        """Base URL for Dropbox RPC endpoints."""
        return os.environ.get(API_URL_ENV, DEFAULT_API_URL).rstrip("/")

    @property
    def content_url(self) -> str:
        """Base URL for Dropbox content (upload/download) endpoints."""
        return os.environ.get(CONTENT_URL_ENV, DEFAULT_CONTENT_URL).rstrip("/")

    @property
    def projects_dir(self) -> Optional[Path]:
        """Default base folder holding project directories."""
        value = os.environ.get(PROJECTS_DIR_ENV, "").strip()
        if not value:
            return None
        return Path(value).expanduser()

    @property
    def debug(self) -> bool:
        """Whether debug logging was requested."""
        return os.environ.get(DEBUG_ENV, "").strip().lower() in _TRUTHY


config = Config()


def configure_logging(debug: Optional[bool] = None) -> None:
    """Configure logging for the projsync package.

    Args:
        debug: Enable debug output. Falls back to ``PROJSYNC_DEBUG`` when None.
    """
    if debug is None:
        debug = config.debug

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("projsync").setLevel(logging.DEBUG)
        # httpx logs every request at INFO level
        logging.getLogger("httpx").setLevel(logging.WARNING)
    else:
        logging.basicConfig(level=logging.WARNING)
