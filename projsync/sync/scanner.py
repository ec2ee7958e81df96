"""Directory scanning utilities for sync operations."""

import fnmatch
import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from ..models import FileMetadata
from ..utils import hash_file, strip_namespace

logger = logging.getLogger(__name__)

SkipCallback = Callable[[str, Optional[os.stat_result]], bool]
"""Predicate ``(relative_path, stat_result) -> bool``; True excludes the file.

Remote-side entries are checked with ``stat_result=None``.
"""

VCS_DIRECTORIES = frozenset({".git", ".hg", ".svn", ".bzr"})


@dataclass
class LocalFile:
    """Represents a local file with metadata."""

    path: Path
    """Absolute path to the file"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    size: int
    """File size in bytes"""

    mtime: float
    """Last modification time (Unix timestamp)"""

    _content_hash: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def content_hash(self) -> str:
        """Dropbox content hash, computed on first access and cached.

        Raises:
            OSError: If the file cannot be read
        """
        if self._content_hash is None:
            self._content_hash = hash_file(self.path)
        return self._content_hash

    @classmethod
    def from_path(
        cls,
        file_path: Path,
        base_path: Path,
        stat: Optional[os.stat_result] = None,
    ) -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Absolute path to the file
            base_path: Base path for calculating relative paths
            stat: Already fetched stat result, if any

        Returns:
            LocalFile instance
        """
        if stat is None:
            stat = file_path.stat()
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = file_path.relative_to(base_path).as_posix()

        return cls(
            path=file_path,
            relative_path=relative_path,
            size=stat.st_size,
            mtime=stat.st_mtime,
        )


@dataclass
class RemoteFile:
    """Represents a remote file with metadata."""

    entry: FileMetadata
    """Remote file entry from the listing"""

    relative_path: str
    """Path relative to the remote namespace"""

    @property
    def size(self) -> int:
        """Declared file size in bytes."""
        return self.entry.size

    @property
    def content_hash(self) -> Optional[str]:
        """Declared Dropbox content hash."""
        return self.entry.content_hash

    @property
    def path(self) -> str:
        """Full remote path as displayed by the backend."""
        return self.entry.path_display

    @property
    def id(self) -> str:
        """Remote entry ID."""
        return self.entry.id


def skip_vcs_metadata(
    relative_path: str, stat: Optional[os.stat_result] = None
) -> bool:
    """Skip predicate for version-control metadata, as a folder or a file."""
    parts = relative_path.split("/")
    return any(part in VCS_DIRECTORIES for part in parts)


def _matches_pattern(relative_path: str, pattern: str) -> bool:
    """Check a relative path against one ignore pattern.

    Patterns without a slash match the file name at any depth; patterns
    with a slash match from the root; a trailing slash matches a folder
    and everything below it.
    """
    pattern = pattern.strip().replace("\\", "/")
    if pattern.startswith("./"):
        pattern = pattern[2:]
    if not pattern:
        return False
    if pattern.endswith("/"):
        prefix = pattern.rstrip("/")
        return relative_path == prefix or relative_path.startswith(prefix + "/")
    if "/" not in pattern:
        return fnmatch.fnmatchcase(relative_path.rsplit("/", 1)[-1], pattern)
    return fnmatch.fnmatchcase(relative_path, pattern.lstrip("/"))


def build_skip_filter(
    ignore_patterns: Optional[Iterable[str]] = None,
    exclude_dot_files: bool = False,
    skip_vcs: bool = False,
    extra: Optional[SkipCallback] = None,
) -> Optional[SkipCallback]:
    """Compose a skip predicate from common options.

    Args:
        ignore_patterns: Glob patterns (e.g., ["*.log", "build/"])
        exclude_dot_files: Skip files inside or named like dot entries
        skip_vcs: Skip version-control metadata, folders and files alike
        extra: Additional caller-supplied predicate

    Returns:
        A predicate, or None when nothing is to be skipped
    """
    patterns = [p for p in (ignore_patterns or []) if p and p.strip()]
    if not patterns and not exclude_dot_files and not skip_vcs and extra is None:
        return None

    def skip(relative_path: str, stat: Optional[os.stat_result]) -> bool:
        if skip_vcs and skip_vcs_metadata(relative_path, stat):
            return True
        if exclude_dot_files and any(
            part.startswith(".") for part in relative_path.split("/")
        ):
            return True
        if any(_matches_pattern(relative_path, p) for p in patterns):
            return True
        return extra is not None and extra(relative_path, stat)

    return skip


class DirectoryScanner:
    """Walks a local directory tree and lists its regular files.

    The walk is depth-first with entries visited in sorted order, so the
    same tree always produces the same sequence. Read errors are not
    swallowed: the first ``OSError`` aborts the walk.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> files = scanner.scan_local(Path("/sync/folder"))

        >>> # Leave out version-control metadata
        >>> scanner = DirectoryScanner(skip=skip_vcs_metadata)
        >>> for f in scanner.iter_local(Path("/sync/folder")):
        ...     print(f.relative_path)
    """

    def __init__(self, skip: Optional[SkipCallback] = None):
        """Initialize directory scanner.

        Args:
            skip: Optional predicate; files for which it returns True are
                left out as if they did not exist
        """
        self.skip = skip

    def iter_local(self, root: Path) -> Iterator[LocalFile]:
        """Recursively yield every regular file under ``root``.

        Args:
            root: Directory to walk

        Yields:
            LocalFile objects, directories are never yielded

        Raises:
            OSError: On the first unreadable directory or file
        """
        yield from self._walk(root, root)

    def _walk(self, directory: Path, base_path: Path) -> Iterator[LocalFile]:
        for item in sorted(directory.iterdir()):
            if item.is_symlink() and item.is_dir():
                # Following directory links could loop forever
                logger.debug("Not following directory link: %s", item)
                continue

            if item.is_dir():
                yield from self._walk(item, base_path)
            elif item.is_file():
                stat = item.stat()
                relative_path = item.relative_to(base_path).as_posix()
                if self.is_skipped(relative_path, stat):
                    logger.debug("Skipping %s", relative_path)
                    continue
                yield LocalFile.from_path(item, base_path, stat=stat)

    def scan_local(self, root: Path) -> list[LocalFile]:
        """Scan a local directory into a list.

        Args:
            root: Directory to scan

        Returns:
            List of LocalFile objects in walk order
        """
        return list(self.iter_local(root))

    def is_skipped(
        self, relative_path: str, stat: Optional[os.stat_result] = None
    ) -> bool:
        """Check a relative path against the skip predicate.

        Remote entries have no local stat and are checked with None.
        """
        return self.skip is not None and self.skip(relative_path, stat)


def scan_remote(entries: Iterable[FileMetadata], namespace: str) -> list[RemoteFile]:
    """Process remote listing entries into RemoteFile objects.

    Args:
        entries: Entries from a recursive listing of ``namespace``
        namespace: Namespace the listing was requested for

    Returns:
        List of RemoteFile objects (folders and deleted markers dropped)
    """
    remote_files: list[RemoteFile] = []

    for entry in entries:
        # Only include files, not folders
        if not entry.is_file:
            continue
        relative_path = strip_namespace(namespace, entry.path_lower, entry.path_display)
        remote_files.append(RemoteFile(entry=entry, relative_path=relative_path))

    return remote_files
