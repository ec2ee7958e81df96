"""File comparison logic for sync operations."""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..utils import path_key
from .scanner import DirectoryScanner, LocalFile, RemoteFile

logger = logging.getLogger(__name__)


class DiffResult(str, Enum):
    """Reconciliation state of one relative path."""

    MATCH = "match"
    """Both sides exist with the same content"""

    MISMATCH = "mismatch"
    """Both sides exist but their content differs"""

    ONLY_LOCAL = "only_local"
    """The file only exists locally"""

    ONLY_REMOTE = "only_remote"
    """The file only exists remotely"""


@dataclass
class FileDiff:
    """Classification of a single relative path."""

    relative_path: str
    """Relative path of the file"""

    result: DiffResult
    """How the two sides relate"""

    reason: str
    """Human-readable reason for this classification"""

    local_file: Optional[LocalFile] = None
    """Local file (if exists)"""

    remote_file: Optional[RemoteFile] = None
    """Remote file (if exists)"""


DiffCallback = Callable[[FileDiff], None]


class DiffEngine:
    """Compares a local tree with a remote snapshot.

    Every relative path present on either side is classified exactly once.
    Local paths are classified while the tree is walked, in walk order;
    remote-only paths follow after the walk has finished.

    Examples:
        >>> engine = DiffEngine(DirectoryScanner())
        >>> for diff in engine.iter_diffs(Path("/local"), snapshot):
        ...     print(diff.result.value, diff.relative_path)
    """

    def __init__(self, scanner: Optional[DirectoryScanner] = None):
        """Initialize diff engine.

        Args:
            scanner: Scanner for the local side; its skip predicate also
                filters remote paths
        """
        self.scanner = scanner or DirectoryScanner()

    def iter_diffs(
        self, local_root: Path, snapshot: Mapping[str, RemoteFile]
    ) -> Iterator[FileDiff]:
        """Yield one FileDiff per relative path on either side.

        The snapshot is only read, never modified. Remote-only paths are
        computed as ``remote_paths - seen_local_paths`` once the walk is done.
        Paths are joined case-insensitively, the way Dropbox resolves them;
        a remote-only diff carries the remote spelling of its path.

        Args:
            local_root: Local root directory
            snapshot: Remote files keyed by relative path

        Yields:
            FileDiff objects

        Raises:
            OSError: If the local walk or a local hash fails
        """
        remote_files = self._filter_remote(snapshot)
        seen_local: set[str] = set()

        for local_file in self.scanner.iter_local(local_root):
            path = local_file.relative_path
            key = path_key(path)
            seen_local.add(key)
            logger.debug("Comparing %r", path)

            remote_file = remote_files.get(key)
            if remote_file is None:
                yield FileDiff(
                    relative_path=path,
                    result=DiffResult.ONLY_LOCAL,
                    reason="New local file",
                    local_file=local_file,
                )
            else:
                yield self.compare_file(local_file, remote_file)

        yield from self._drain_remote(remote_files, seen_local)

    def iter_remote_only(
        self, snapshot: Mapping[str, RemoteFile]
    ) -> Iterator[FileDiff]:
        """Classify a snapshot against a local side that does not exist yet.

        Args:
            snapshot: Remote files keyed by relative path

        Yields:
            ONLY_REMOTE FileDiff objects
        """
        yield from self._drain_remote(self._filter_remote(snapshot), set())

    def _filter_remote(
        self, snapshot: Mapping[str, RemoteFile]
    ) -> dict[str, RemoteFile]:
        # Keyed by path_key, not by the snapshot's display-cased keys
        return {
            path_key(path): remote_file
            for path, remote_file in snapshot.items()
            if not self.scanner.is_skipped(path)
        }

    def _drain_remote(
        self, remote_files: dict[str, RemoteFile], seen_local: set[str]
    ) -> Iterator[FileDiff]:
        for key in sorted(frozenset(remote_files) - seen_local):
            remote_file = remote_files[key]
            yield FileDiff(
                relative_path=remote_file.relative_path,
                result=DiffResult.ONLY_REMOTE,
                reason="New remote file",
                remote_file=remote_file,
            )

    def walk_diffs(
        self,
        local_root: Path,
        snapshot: Mapping[str, RemoteFile],
        callback: DiffCallback,
    ) -> None:
        """Feed every classification to a callback.

        An exception raised by the callback stops the traversal at once and
        propagates to the caller.

        Args:
            local_root: Local root directory
            snapshot: Remote files keyed by relative path
            callback: Called once per FileDiff
        """
        diffs = self.iter_diffs(local_root, snapshot)
        try:
            for diff in diffs:
                callback(diff)
        finally:
            diffs.close()

    def compare_file(self, local_file: LocalFile, remote_file: RemoteFile) -> FileDiff:
        """Compare a file that exists on both sides.

        Differing sizes settle the question without reading the file; equal
        sizes are never trusted alone and the local content hash is computed.

        Args:
            local_file: Local side
            remote_file: Remote side

        Returns:
            FileDiff with MATCH or MISMATCH
        """
        path = local_file.relative_path

        if local_file.size != remote_file.size:
            return FileDiff(
                relative_path=path,
                result=DiffResult.MISMATCH,
                reason=f"Sizes differ ({local_file.size} vs {remote_file.size})",
                local_file=local_file,
                remote_file=remote_file,
            )

        if not remote_file.content_hash:
            return FileDiff(
                relative_path=path,
                result=DiffResult.MISMATCH,
                reason="Remote content hash unavailable",
                local_file=local_file,
                remote_file=remote_file,
            )

        if local_file.content_hash == remote_file.content_hash:
            return FileDiff(
                relative_path=path,
                result=DiffResult.MATCH,
                reason="Files are identical",
                local_file=local_file,
                remote_file=remote_file,
            )

        return FileDiff(
            relative_path=path,
            result=DiffResult.MISMATCH,
            reason="Content hashes differ",
            local_file=local_file,
            remote_file=remote_file,
        )
