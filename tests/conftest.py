"""Shared fixtures: an in-memory storage backend."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from projsync.exceptions import StorageError, StorageNotFoundError
from projsync.models import FileMetadata
from projsync.output import OutputFormatter
from projsync.sync.backend import StorageBackend
from projsync.sync.engine import SyncEngine
from projsync.sync.scanner import RemoteFile
from projsync.utils import content_hash_bytes, normalize_namespace, strip_namespace


def make_entry(path: str, data: bytes, content_hash="auto") -> FileMetadata:
    """Build a file listing entry for ``data`` stored at ``path``."""
    if content_hash == "auto":
        content_hash = content_hash_bytes(data)
    return FileMetadata(
        tag="file",
        name=path.rsplit("/", 1)[-1],
        path_lower=path.lower(),
        path_display=path,
        id=f"id:{path.lower()}",
        size=len(data),
        content_hash=content_hash,
    )


def make_remote_file(relative_path: str, data: bytes, **kwargs) -> RemoteFile:
    """Build a RemoteFile under the ``/proj`` namespace."""
    return RemoteFile(
        entry=make_entry(f"/proj/{relative_path}", data, **kwargs),
        relative_path=relative_path,
    )


class InMemoryBackend(StorageBackend):
    """StorageBackend keeping remote files in a dictionary.

    ``files`` maps full remote paths to their content. ``fail_on`` holds
    ``(operation, remote_path)`` pairs that raise StorageError. With
    ``case_insensitive`` set, paths resolve like Dropbox's: an existing file
    keeps its stored spelling whatever case it is addressed with.
    """

    def __init__(self, files=None, case_insensitive=False):
        self.case_insensitive = case_insensitive
        self.files: dict[str, bytes] = dict(files or {})
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[tuple[str, str]] = set()
        self.missing_namespaces: set[str] = set()

    def _check(self, operation: str, remote_path: str) -> None:
        self.calls.append((operation, remote_path))
        if (operation, remote_path) in self.fail_on:
            raise StorageError(f"{operation} failed for {remote_path}")

    def _resolve(self, remote_path: str) -> str:
        if self.case_insensitive:
            for path in self.files:
                if path.lower() == remote_path.lower():
                    return path
        return remote_path

    def list_recursive(self, namespace: str) -> dict[str, RemoteFile]:
        namespace = normalize_namespace(namespace)
        self._check("list", namespace)
        if namespace in self.missing_namespaces:
            raise StorageNotFoundError(path=namespace)

        prefix = namespace.lower() + "/"
        result = {}
        for path, data in self.files.items():
            if not path.lower().startswith(prefix):
                continue
            entry = make_entry(path, data)
            relative_path = strip_namespace(
                namespace, entry.path_lower, entry.path_display
            )
            result[relative_path] = RemoteFile(
                entry=entry, relative_path=relative_path
            )
        return result

    def upload(self, local_path: Path, remote_path: str) -> None:
        self._check("upload", remote_path)
        self.files[self._resolve(remote_path)] = Path(local_path).read_bytes()

    def download(self, remote_path: str, local_path: Path) -> None:
        self._check("download", remote_path)
        remote_path = self._resolve(remote_path)
        if remote_path not in self.files:
            raise StorageNotFoundError(path=remote_path)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(self.files[remote_path])

    def delete(self, remote_path: str) -> None:
        self._check("delete", remote_path)
        remote_path = self._resolve(remote_path)
        if remote_path not in self.files:
            raise StorageNotFoundError(path=remote_path)
        del self.files[remote_path]


@pytest.fixture
def backend():
    """Create an empty in-memory backend."""
    return InMemoryBackend()


@pytest.fixture
def quiet_output():
    """Create a mock output formatter that suppresses output."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True
    return output


@pytest.fixture
def engine(backend, quiet_output):
    """Create a sync engine on top of the in-memory backend."""
    return SyncEngine(backend, quiet_output)


@pytest.fixture
def local_root(tmp_path):
    """Create an empty local sync root."""
    root = tmp_path / "local"
    root.mkdir()
    return root


def write_tree(root: Path, files: dict[str, bytes]) -> None:
    """Write ``{relative_path: content}`` below ``root``."""
    for relative_path, data in files.items():
        path = root.joinpath(*relative_path.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


def read_tree(root: Path) -> dict[str, bytes]:
    """Read every regular file below ``root`` into a dictionary."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
