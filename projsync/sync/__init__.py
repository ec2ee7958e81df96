"""Sync engine for projsync - mirror a local tree against a remote namespace."""

from .backend import DropboxBackend, StorageBackend
from .comparator import DiffEngine, DiffResult, FileDiff
from .engine import SyncEngine
from .inventory import RemoteInventory
from .modes import SyncMode
from .operations import SyncOperations
from .pair import SyncPair
from .reconciler import (
    PullReconciler,
    PushReconciler,
    Reconciler,
    SyncAction,
    create_reconciler,
)
from .scanner import (
    DirectoryScanner,
    LocalFile,
    RemoteFile,
    build_skip_filter,
    skip_vcs_metadata,
)

__all__ = [
    "SyncEngine",
    "SyncMode",
    "SyncPair",
    "SyncOperations",
    "StorageBackend",
    "DropboxBackend",
    "RemoteInventory",
    "DiffEngine",
    "DiffResult",
    "FileDiff",
    "Reconciler",
    "PushReconciler",
    "PullReconciler",
    "SyncAction",
    "create_reconciler",
    "DirectoryScanner",
    "LocalFile",
    "RemoteFile",
    "build_skip_filter",
    "skip_vcs_metadata",
]
