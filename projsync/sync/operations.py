"""Sync operations wrapper for unified upload/download interface."""

import logging
from pathlib import Path
from typing import Optional

import send2trash

from .backend import StorageBackend

logger = logging.getLogger(__name__)


class SyncOperations:
    """Unified file actions on both sides of a sync pair."""

    def __init__(self, backend: StorageBackend):
        """Initialize sync operations.

        Args:
            backend: Storage backend for remote actions
        """
        self.backend = backend

    def upload_file(self, local_path: Path, remote_path: str) -> None:
        """Upload a local file, overwriting the remote copy.

        Args:
            local_path: Local file to upload
            remote_path: Full remote destination path
        """
        logger.debug("(UPLOAD) %r -> %r", str(local_path), remote_path)
        self.backend.upload(local_path, remote_path)

    def download_file(self, remote_path: str, local_path: Path) -> Path:
        """Download a remote file to local storage.

        Args:
            remote_path: Full remote source path
            local_path: Local path where file should be saved

        Returns:
            Path where file was saved
        """
        logger.debug("(DOWNLOAD) %r -> %r", remote_path, str(local_path))
        # Ensure parent directory exists
        local_path.parent.mkdir(parents=True, exist_ok=True)
        self.backend.download(remote_path, local_path)
        return local_path

    def delete_remote(self, remote_path: str) -> None:
        """Delete a remote file.

        Args:
            remote_path: Full remote path
        """
        logger.debug("(REMOVE) %r", remote_path)
        self.backend.delete(remote_path)

    def delete_local(
        self,
        local_path: Path,
        use_trash: bool = False,
        root: Optional[Path] = None,
    ) -> None:
        """Delete a local file.

        Folders left empty by the delete are removed too, up to but not
        including ``root``, so a remote file can later take their place.

        Args:
            local_path: Local file to delete
            use_trash: If True, move to the system trash instead of unlinking
            root: Local sync root; no folders are removed when None
        """
        logger.debug("(REMOVE) %r", str(local_path))
        if use_trash:
            send2trash.send2trash(str(local_path))
        else:
            local_path.unlink()

        if root is not None:
            self._prune_empty_parents(local_path, root)

    def _prune_empty_parents(self, local_path: Path, root: Path) -> None:
        parent = local_path.parent
        while parent != root and root in parent.parents:
            if any(parent.iterdir()):
                break
            logger.debug("(REMOVE) %r", str(parent))
            parent.rmdir()
            parent = parent.parent
