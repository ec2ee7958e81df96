"""Tests for SyncOperations."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from projsync.sync.backend import StorageBackend
from projsync.sync.operations import SyncOperations


class TestSyncOperations:
    """Tests for file actions on both sides."""

    @pytest.fixture
    def backend(self):
        return Mock(spec=StorageBackend)

    @pytest.fixture
    def operations(self, backend):
        return SyncOperations(backend)

    def test_upload_file(self, operations, backend):
        """Test upload delegates to the backend."""
        operations.upload_file(Path("/local/a.txt"), "/proj/a.txt")
        backend.upload.assert_called_once_with(Path("/local/a.txt"), "/proj/a.txt")

    def test_download_creates_parents(self, operations, backend, tmp_path):
        """Test download creates the parent directory first."""
        target = tmp_path / "x" / "y" / "a.txt"

        result = operations.download_file("/proj/x/y/a.txt", target)

        assert result == target
        assert target.parent.is_dir()
        backend.download.assert_called_once_with("/proj/x/y/a.txt", target)

    def test_delete_remote(self, operations, backend):
        """Test remote delete delegates to the backend."""
        operations.delete_remote("/proj/a.txt")
        backend.delete.assert_called_once_with("/proj/a.txt")

    def test_delete_local_unlinks(self, operations, tmp_path):
        """Test local delete removes the file."""
        target = tmp_path / "a.txt"
        target.write_text("x")

        operations.delete_local(target)

        assert not target.exists()

    def test_delete_local_to_trash(self, operations, tmp_path):
        """Test local delete can use the system trash."""
        target = tmp_path / "a.txt"
        target.write_text("x")

        with patch("projsync.sync.operations.send2trash.send2trash") as mock_trash:
            operations.delete_local(target, use_trash=True)

        mock_trash.assert_called_once_with(str(target))
        assert target.exists()

    def test_delete_local_missing_raises(self, operations, tmp_path):
        """Test deleting a missing local file fails."""
        with pytest.raises(FileNotFoundError):
            operations.delete_local(tmp_path / "missing.txt")

    def test_delete_local_prunes_empty_folders(self, operations, tmp_path):
        """Test folders emptied by a delete are removed up to the root."""
        root = tmp_path / "root"
        target = root / "a" / "b" / "c.txt"
        target.parent.mkdir(parents=True)
        target.write_text("x")

        operations.delete_local(target, root=root)

        assert root.is_dir()
        assert list(root.iterdir()) == []

    def test_delete_local_keeps_non_empty_folders(self, operations, tmp_path):
        """Test pruning stops at the first folder that still holds entries."""
        root = tmp_path / "root"
        (root / "a" / "b").mkdir(parents=True)
        (root / "a" / "keep.txt").write_text("k")
        target = root / "a" / "b" / "c.txt"
        target.write_text("x")

        operations.delete_local(target, root=root)

        assert not (root / "a" / "b").exists()
        assert sorted(p.name for p in (root / "a").iterdir()) == ["keep.txt"]

    def test_delete_local_without_root_keeps_folders(self, operations, tmp_path):
        """Test no folder is removed when no root is given."""
        target = tmp_path / "a" / "c.txt"
        target.parent.mkdir()
        target.write_text("x")

        operations.delete_local(target)

        assert (tmp_path / "a").is_dir()
