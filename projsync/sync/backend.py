"""Storage backend interface and the Dropbox implementation."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from ..api import DropboxClient
from ..exceptions import StorageNotFoundError
from ..utils import normalize_namespace
from .scanner import RemoteFile, scan_remote

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Remote storage that can list, upload, download and delete files.

    Every call is blocking. Paths passed to ``upload``, ``download`` and
    ``delete`` are full remote paths; ``list_recursive`` keys its result by
    path relative to the namespace.
    """

    @abstractmethod
    def list_recursive(self, namespace: str) -> dict[str, RemoteFile]:
        """List every file under a namespace.

        Args:
            namespace: Remote folder to list

        Returns:
            Mapping of relative path to RemoteFile; empty if the namespace
            does not exist
        """

    @abstractmethod
    def upload(self, local_path: Path, remote_path: str) -> None:
        """Upload a local file, overwriting any remote file at that path."""

    @abstractmethod
    def download(self, remote_path: str, local_path: Path) -> None:
        """Download a remote file, creating local parent directories."""

    @abstractmethod
    def delete(self, remote_path: str) -> None:
        """Delete a remote file."""


class DropboxBackend(StorageBackend):
    """StorageBackend on top of the Dropbox HTTP API."""

    def __init__(self, client: DropboxClient):
        """Initialize the backend.

        Args:
            client: Dropbox API client
        """
        self.client = client

    def list_recursive(self, namespace: str) -> dict[str, RemoteFile]:
        namespace = normalize_namespace(namespace)
        try:
            entries = self.client.list_folder(namespace, recursive=True)
        except StorageNotFoundError:
            # Created lazily by the first upload
            logger.debug("Namespace %r does not exist yet", namespace)
            return {}

        remote_files = scan_remote(entries, namespace)
        logger.debug(
            "Listed %d entries (%d files) under %r",
            len(entries),
            len(remote_files),
            namespace,
        )
        return {f.relative_path: f for f in remote_files}

    def upload(self, local_path: Path, remote_path: str) -> None:
        self.client.upload(local_path, remote_path)

    def download(self, remote_path: str, local_path: Path) -> None:
        self.client.download(remote_path, local_path)

    def delete(self, remote_path: str) -> None:
        self.client.delete(remote_path)
