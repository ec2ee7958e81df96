"""Utility functions for projsync."""

import hashlib
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Union

# =============================================================================
# Constants for file operations
# =============================================================================

# Block size used by the Dropbox content hash (4 MiB)
HASH_BLOCK_SIZE: int = 4 * 1024 * 1024

# Chunk size for upload sessions (16 MiB)
DEFAULT_CHUNK_SIZE: int = 16 * 1024 * 1024

# Files larger than this use an upload session instead of a single request
DEFAULT_SESSION_THRESHOLD: int = DEFAULT_CHUNK_SIZE

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Read size when streaming downloads to disk
DOWNLOAD_CHUNK_SIZE: int = 64 * 1024


# =============================================================================
# Content hash utilities
# =============================================================================


class ContentHasher:
    """Incremental Dropbox content hash.

    The input is split into 4 MiB blocks, each block is hashed with
    SHA-256, and the concatenated block digests are hashed again with
    SHA-256. Data may be fed in pieces of any size; pieces are regrouped
    into full blocks so the result only depends on the bytes themselves.

    Examples:
        >>> hasher = ContentHasher()
        >>> hasher.update(b"hello ")
        >>> hasher.update(b"world")
        >>> hasher.hexdigest() == content_hash_bytes(b"hello world")
        True
    """

    def __init__(self, block_size: int = HASH_BLOCK_SIZE):
        if block_size <= 0:
            raise ValueError("block_size must be positive")
        self.block_size = block_size
        self._overall = hashlib.sha256()
        self._block = hashlib.sha256()
        self._block_pos = 0

    def update(self, data: bytes) -> None:
        """Feed more bytes into the hash."""
        view = memoryview(data)
        while view:
            take = min(self.block_size - self._block_pos, len(view))
            self._block.update(view[:take])
            self._block_pos += take
            view = view[take:]
            if self._block_pos == self.block_size:
                self._overall.update(self._block.digest())
                self._block = hashlib.sha256()
                self._block_pos = 0

    def hexdigest(self) -> str:
        """Return the hex-encoded content hash of everything fed so far."""
        overall = self._overall.copy()
        if self._block_pos > 0:
            overall.update(self._block.digest())
        return overall.hexdigest()


def content_hash(stream: BinaryIO, read_size: int = HASH_BLOCK_SIZE) -> str:
    """Compute the Dropbox content hash of a binary stream.

    Args:
        stream: Readable binary stream, consumed until EOF
        read_size: Number of bytes requested per read call

    Returns:
        Hex-encoded content hash (64 characters)
    """
    hasher = ContentHasher()
    while True:
        chunk = stream.read(read_size)
        if not chunk:
            break
        hasher.update(chunk)
    return hasher.hexdigest()


def content_hash_bytes(data: bytes) -> str:
    """Compute the Dropbox content hash of an in-memory byte string."""
    hasher = ContentHasher()
    hasher.update(data)
    return hasher.hexdigest()


def hash_file(path: Union[str, Path]) -> str:
    """Compute the Dropbox content hash of a local file.

    Args:
        path: Path to a regular file

    Returns:
        Hex-encoded content hash

    Raises:
        OSError: If the file cannot be opened or read
    """
    with open(path, "rb") as f:
        return content_hash(f)


# =============================================================================
# Remote path utilities
# =============================================================================


def normalize_namespace(remote: str) -> str:
    """Normalize a remote namespace to ``/a/b`` form.

    The root namespace is represented by an empty string, which is what
    the Dropbox API expects for the root folder.

    Examples:
        >>> normalize_namespace("projects/foo/")
        '/projects/foo'
        >>> normalize_namespace("/")
        ''
    """
    stripped = remote.strip().strip("/")
    if not stripped:
        return ""
    return "/" + PurePosixPath(stripped).as_posix()


def join_remote(namespace: str, relative_path: str) -> str:
    """Join a normalized namespace and a relative path into a remote path.

    Examples:
        >>> join_remote("/proj", "docs/a.txt")
        '/proj/docs/a.txt'
        >>> join_remote("", "a.txt")
        '/a.txt'
    """
    return f"{normalize_namespace(namespace)}/{relative_path.lstrip('/')}"


def strip_namespace(namespace: str, path_lower: str, path_display: str) -> str:
    """Make a remote path relative to its namespace.

    Dropbox paths are case-insensitive, so the prefix is matched against
    the lower-cased path while the returned suffix keeps the display case.

    Args:
        namespace: Namespace the listing was requested for
        path_lower: Lower-cased full path reported by the backend
        path_display: Display-cased full path reported by the backend

    Returns:
        Path relative to the namespace, with forward slashes

    Raises:
        ValueError: If the path is not inside the namespace
    """
    prefix = normalize_namespace(namespace).lower() + "/"
    if not path_lower.startswith(prefix):
        raise ValueError(f"{path_display!r} is not inside namespace {namespace!r}")
    return path_display[len(prefix) :]


def path_key(relative_path: str) -> str:
    """Key under which two relative paths name the same remote file.

    Dropbox compares paths case-insensitively, so ``README.md`` and
    ``readme.md`` are one file there.
    """
    return relative_path.lower()


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
