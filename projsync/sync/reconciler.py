"""Reconcilers turning classifications into actions."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..utils import join_remote, normalize_namespace
from .comparator import DiffResult, FileDiff
from .modes import SyncMode
from .operations import SyncOperations

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    UPLOAD = "upload"
    """Upload local file to remote"""

    DOWNLOAD = "download"
    """Download remote file to local"""

    DELETE_LOCAL = "delete_local"
    """Delete local file"""

    DELETE_REMOTE = "delete_remote"
    """Delete remote file"""

    SKIP = "skip"
    """Skip file (no action needed)"""


STAT_KEYS = {
    SyncAction.UPLOAD: "uploads",
    SyncAction.DOWNLOAD: "downloads",
    SyncAction.DELETE_LOCAL: "deletes_local",
    SyncAction.DELETE_REMOTE: "deletes_remote",
    SyncAction.SKIP: "skips",
}

ActionCallback = Callable[[FileDiff, SyncAction], None]


def create_empty_stats() -> dict[str, int]:
    """Create an empty statistics dictionary."""
    return {key: 0 for key in STAT_KEYS.values()}


class Reconciler(ABC):
    """Applies one direction's policy to a stream of classifications.

    Actions run one at a time, in the order the diffs arrive. The first
    failing action stops reconciliation and its exception propagates;
    nothing already done is rolled back. Because the next run diffs
    current state from scratch, running again finishes the remaining work.
    """

    mode: SyncMode

    def __init__(
        self,
        operations: SyncOperations,
        local_root: Path,
        namespace: str,
        use_local_trash: bool = False,
    ):
        """Initialize reconciler.

        Args:
            operations: File actions on both sides
            local_root: Local root directory
            namespace: Remote namespace
            use_local_trash: Move deleted local files to the system trash
        """
        self.operations = operations
        self.local_root = local_root
        self.namespace = normalize_namespace(namespace)
        self.use_local_trash = use_local_trash

    def local_path(self, relative_path: str) -> Path:
        """Absolute local path for a relative path."""
        return self.local_root.joinpath(*relative_path.split("/"))

    def remote_path(self, relative_path: str) -> str:
        """Full remote path for a relative path."""
        return join_remote(self.namespace, relative_path)

    @abstractmethod
    def plan(self, diff: FileDiff) -> SyncAction:
        """Decide which action a classification calls for.

        Raises:
            ValueError: For an unknown classification
        """

    def apply(self, diff: FileDiff) -> SyncAction:
        """Carry out the action for one classification."""
        action = self.plan(diff)
        path = diff.relative_path

        if action == SyncAction.UPLOAD:
            self.operations.upload_file(self.local_path(path), self.remote_path(path))
        elif action == SyncAction.DOWNLOAD:
            self.operations.download_file(self.remote_path(path), self.local_path(path))
        elif action == SyncAction.DELETE_REMOTE:
            self.operations.delete_remote(self.remote_path(path))
        elif action == SyncAction.DELETE_LOCAL:
            self.operations.delete_local(
                self.local_path(path),
                use_trash=self.use_local_trash,
                root=self.local_root,
            )
        return action

    def reconcile(
        self,
        diffs: Iterable[FileDiff],
        dry_run: bool = False,
        on_action: Optional[ActionCallback] = None,
    ) -> dict[str, int]:
        """Consume classifications and converge the two sides.

        Args:
            diffs: Classifications, typically straight from DiffEngine
            dry_run: Only count what would be done
            on_action: Called after each action with the diff and action

        Returns:
            Dictionary with sync statistics
        """
        stats = create_empty_stats()

        for diff in diffs:
            action = self.plan(diff) if dry_run else self._apply_logged(diff)
            stats[STAT_KEYS[action]] += 1
            if on_action is not None:
                on_action(diff, action)

        return stats

    def _apply_logged(self, diff: FileDiff) -> SyncAction:
        try:
            return self.apply(diff)
        except Exception as e:
            logger.error(
                "Error syncing %s (%s): %s", diff.relative_path, diff.result.value, e
            )
            raise


class PushReconciler(Reconciler):
    """Local is authoritative."""

    mode = SyncMode.PUSH

    def plan(self, diff: FileDiff) -> SyncAction:
        if diff.result == DiffResult.MATCH:
            return SyncAction.SKIP
        elif diff.result in (DiffResult.MISMATCH, DiffResult.ONLY_LOCAL):
            return SyncAction.UPLOAD
        elif diff.result == DiffResult.ONLY_REMOTE:
            return SyncAction.DELETE_REMOTE
        raise ValueError(f"Unknown diff result: {diff.result!r}")


class PullReconciler(Reconciler):
    """Remote is authoritative."""

    mode = SyncMode.PULL

    def plan(self, diff: FileDiff) -> SyncAction:
        if diff.result == DiffResult.MATCH:
            return SyncAction.SKIP
        elif diff.result in (DiffResult.MISMATCH, DiffResult.ONLY_REMOTE):
            return SyncAction.DOWNLOAD
        elif diff.result == DiffResult.ONLY_LOCAL:
            return SyncAction.DELETE_LOCAL
        raise ValueError(f"Unknown diff result: {diff.result!r}")


RECONCILERS: dict[SyncMode, type[Reconciler]] = {
    SyncMode.PUSH: PushReconciler,
    SyncMode.PULL: PullReconciler,
}


def create_reconciler(
    mode: SyncMode,
    operations: SyncOperations,
    local_root: Path,
    namespace: str,
    use_local_trash: bool = False,
) -> Reconciler:
    """Create the reconciler for a sync mode."""
    return RECONCILERS[mode](
        operations, local_root, namespace, use_local_trash=use_local_trash
    )
