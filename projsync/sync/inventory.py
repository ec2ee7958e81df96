"""Snapshot of the remote side of a sync pair."""

import logging
import time

from ..exceptions import StorageNotFoundError
from .backend import StorageBackend
from .scanner import RemoteFile

logger = logging.getLogger(__name__)


class RemoteInventory:
    """Takes one listing of a remote namespace per sync invocation.

    The snapshot is a fresh dictionary on every call; nothing is cached
    between invocations.
    """

    def __init__(self, backend: StorageBackend):
        """Initialize remote inventory.

        Args:
            backend: Storage backend to list from
        """
        self.backend = backend

    def snapshot(self, namespace: str) -> dict[str, RemoteFile]:
        """List every file under a namespace.

        A namespace that does not exist yet is not an error; it simply
        holds no files.

        Args:
            namespace: Remote folder to list

        Returns:
            Mapping of relative path to RemoteFile

        Raises:
            StorageError: For any backend failure other than "not found"
        """
        start = time.time()
        try:
            listing = self.backend.list_recursive(namespace)
        except StorageNotFoundError:
            logger.debug("Remote namespace %r not found, treating as empty", namespace)
            return {}

        # Folder markers never take part in the diff
        snapshot = {
            path: remote_file
            for path, remote_file in listing.items()
            if remote_file.entry.is_file
        }
        logger.debug(
            "Remote snapshot of %r: %d file(s) in %.2fs",
            namespace,
            len(snapshot),
            time.time() - start,
        )
        return snapshot
