"""Tests for push and pull reconcilers."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from projsync.exceptions import StorageError
from projsync.sync.comparator import DiffResult, FileDiff
from projsync.sync.modes import SyncMode
from projsync.sync.operations import SyncOperations
from projsync.sync.reconciler import (
    PullReconciler,
    PushReconciler,
    SyncAction,
    create_empty_stats,
    create_reconciler,
)


def diff(path, result):
    return FileDiff(relative_path=path, result=result, reason="test")


@pytest.fixture
def operations():
    """Create a mock SyncOperations."""
    return Mock(spec=SyncOperations)


class TestPushReconciler:
    """Local is authoritative."""

    @pytest.fixture
    def reconciler(self, operations):
        return PushReconciler(operations, Path("/local"), "proj")

    @pytest.mark.parametrize(
        "result,action",
        [
            (DiffResult.MATCH, SyncAction.SKIP),
            (DiffResult.MISMATCH, SyncAction.UPLOAD),
            (DiffResult.ONLY_LOCAL, SyncAction.UPLOAD),
            (DiffResult.ONLY_REMOTE, SyncAction.DELETE_REMOTE),
        ],
    )
    def test_plan(self, reconciler, result, action):
        """Test each classification maps to exactly one action."""
        assert reconciler.plan(diff("a.txt", result)) == action

    def test_apply_upload(self, reconciler, operations):
        """Test uploads use joined local and remote paths."""
        reconciler.apply(diff("docs/a.txt", DiffResult.ONLY_LOCAL))
        operations.upload_file.assert_called_once_with(
            Path("/local/docs/a.txt"), "/proj/docs/a.txt"
        )

    def test_apply_delete_remote(self, reconciler, operations):
        """Test remote-only files are deleted remotely."""
        reconciler.apply(diff("old.txt", DiffResult.ONLY_REMOTE))
        operations.delete_remote.assert_called_once_with("/proj/old.txt")

    def test_match_touches_nothing(self, reconciler, operations):
        """Test MATCH performs no operation."""
        reconciler.apply(diff("a.txt", DiffResult.MATCH))
        assert operations.method_calls == []

    def test_unknown_result_rejected(self, reconciler):
        """Test an unknown classification is an error."""
        with pytest.raises(ValueError, match="Unknown diff result"):
            reconciler.plan(diff("a.txt", "bogus"))


class TestPullReconciler:
    """Remote is authoritative."""

    @pytest.fixture
    def reconciler(self, operations):
        return PullReconciler(
            operations, Path("/local"), "/proj/", use_local_trash=True
        )

    @pytest.mark.parametrize(
        "result,action",
        [
            (DiffResult.MATCH, SyncAction.SKIP),
            (DiffResult.MISMATCH, SyncAction.DOWNLOAD),
            (DiffResult.ONLY_REMOTE, SyncAction.DOWNLOAD),
            (DiffResult.ONLY_LOCAL, SyncAction.DELETE_LOCAL),
        ],
    )
    def test_plan(self, reconciler, result, action):
        """Test each classification maps to exactly one action."""
        assert reconciler.plan(diff("a.txt", result)) == action

    def test_apply_download(self, reconciler, operations):
        """Test downloads use joined remote and local paths."""
        reconciler.apply(diff("sub/b.txt", DiffResult.MISMATCH))
        operations.download_file.assert_called_once_with(
            "/proj/sub/b.txt", Path("/local/sub/b.txt")
        )

    def test_apply_delete_local_uses_trash_setting(self, reconciler, operations):
        """Test local deletes pass on the trash option."""
        reconciler.apply(diff("a.txt", DiffResult.ONLY_LOCAL))
        operations.delete_local.assert_called_once_with(
            Path("/local/a.txt"), use_trash=True, root=Path("/local")
        )


class TestReconcile:
    """Tests for Reconciler.reconcile."""

    def test_counts_actions(self, operations):
        """Test statistics count each action."""
        reconciler = PushReconciler(operations, Path("/local"), "/proj")
        diffs = [
            diff("a", DiffResult.MATCH),
            diff("b", DiffResult.ONLY_LOCAL),
            diff("c", DiffResult.MISMATCH),
            diff("d", DiffResult.ONLY_REMOTE),
        ]

        stats = reconciler.reconcile(diffs)

        assert stats == {
            "uploads": 2,
            "downloads": 0,
            "deletes_local": 0,
            "deletes_remote": 1,
            "skips": 1,
        }

    def test_dry_run_performs_nothing(self, operations):
        """Test a dry run only plans."""
        reconciler = PullReconciler(operations, Path("/local"), "/proj")
        seen = []

        stats = reconciler.reconcile(
            [diff("a", DiffResult.ONLY_REMOTE), diff("b", DiffResult.ONLY_LOCAL)],
            dry_run=True,
            on_action=lambda d, a: seen.append((d.relative_path, a)),
        )

        assert operations.method_calls == []
        assert stats["downloads"] == 1
        assert stats["deletes_local"] == 1
        assert seen == [("a", SyncAction.DOWNLOAD), ("b", SyncAction.DELETE_LOCAL)]

    def test_first_failure_stops(self, operations):
        """Test the first failing action aborts the rest."""
        operations.upload_file.side_effect = [None, StorageError("boom"), None]
        reconciler = PushReconciler(operations, Path("/local"), "/proj")
        consumed = []

        def diffs():
            for name in ("a", "b", "c"):
                consumed.append(name)
                yield diff(name, DiffResult.ONLY_LOCAL)

        with pytest.raises(StorageError, match="boom"):
            reconciler.reconcile(diffs())

        assert operations.upload_file.call_count == 2
        assert consumed == ["a", "b"]

    def test_root_namespace(self, operations):
        """Test the root namespace produces top-level remote paths."""
        reconciler = PushReconciler(operations, Path("/local"), "/")
        assert reconciler.remote_path("a.txt") == "/a.txt"

    def test_empty_stats(self):
        """Test empty statistics have every key at zero."""
        assert set(create_empty_stats().values()) == {0}


class TestCreateReconciler:
    """Tests for create_reconciler."""

    def test_push(self, operations):
        reconciler = create_reconciler(SyncMode.PUSH, operations, Path("/l"), "/r")
        assert isinstance(reconciler, PushReconciler)

    def test_pull(self, operations):
        reconciler = create_reconciler(SyncMode.PULL, operations, Path("/l"), "/r")
        assert isinstance(reconciler, PullReconciler)
        assert reconciler.namespace == "/r"
