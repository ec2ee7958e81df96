"""Core sync engine for executing sync operations."""

import logging
import time
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Optional, Union

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..output import OutputFormatter
from ..utils import format_size
from .backend import StorageBackend
from .comparator import DiffEngine, FileDiff
from .inventory import RemoteInventory
from .modes import SyncMode
from .operations import SyncOperations
from .pair import SyncPair
from .reconciler import SyncAction, create_reconciler
from .scanner import DirectoryScanner

logger = logging.getLogger(__name__)

ACTION_LABELS = {
    SyncAction.UPLOAD: "↑ Upload",
    SyncAction.DOWNLOAD: "↓ Download",
    SyncAction.DELETE_LOCAL: "✗ Delete local",
    SyncAction.DELETE_REMOTE: "✗ Delete remote",
}


class SyncEngine:
    """Core sync engine that orchestrates file synchronization.

    One call to :meth:`sync_pair` is one invocation: the remote namespace
    is listed once, the local tree is walked once, and each classification
    is turned into at most one action before the next one is computed.
    """

    def __init__(
        self,
        backend: StorageBackend,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            backend: Storage backend for the remote side
            output: Output formatter for displaying progress/status
        """
        self.backend = backend
        self.output = output or OutputFormatter()
        self.operations = SyncOperations(backend)
        self.inventory = RemoteInventory(backend)

    def push(self, local: Union[str, Path], remote: str, **kwargs: Any) -> dict:
        """Make the remote namespace mirror the local directory."""
        dry_run = kwargs.pop("dry_run", False)
        pair = SyncPair(
            local=Path(local), remote=remote, sync_mode=SyncMode.PUSH, **kwargs
        )
        return self.sync_pair(pair, dry_run=dry_run)

    def pull(self, local: Union[str, Path], remote: str, **kwargs: Any) -> dict:
        """Make the local directory mirror the remote namespace."""
        dry_run = kwargs.pop("dry_run", False)
        pair = SyncPair(
            local=Path(local), remote=remote, sync_mode=SyncMode.PULL, **kwargs
        )
        return self.sync_pair(pair, dry_run=dry_run)

    def sync_pair(self, pair: SyncPair, dry_run: bool = False) -> dict:
        """Sync a single sync pair.

        Args:
            pair: Sync pair to synchronize
            dry_run: If True, only show what would be done without actually syncing

        Returns:
            Dictionary with sync statistics

        Raises:
            ValueError: If the local path is unusable
            StorageError: On the first backend failure
            OSError: On the first local filesystem failure

        Examples:
            >>> engine = SyncEngine(DropboxBackend(DropboxClient()))
            >>> pair = SyncPair(Path("/local"), "/remote", SyncMode.PUSH)
            >>> stats = engine.sync_pair(pair, dry_run=True)
            >>> print(f"Would upload {stats['uploads']} files")
        """
        self._prepare_local(pair, dry_run)

        if not self.output.quiet:
            self.output.info(f"Syncing: {pair.local} <-> {pair.remote or '/'}")
            self.output.info(f"Mode: {pair.sync_mode.value}")
            if dry_run:
                self.output.info("Dry run: No changes will be made")
            self.output.print("")

        start_time = time.time()
        snapshot = self._snapshot_remote(pair)

        diff_engine = DiffEngine(DirectoryScanner(skip=pair.skip_filter()))
        reconciler = create_reconciler(
            pair.sync_mode,
            self.operations,
            pair.local,
            pair.remote,
            use_local_trash=pair.use_local_trash,
        )

        if pair.local.exists():
            diffs = diff_engine.iter_diffs(pair.local, snapshot)
        else:
            # Dry-run pull into a folder that does not exist yet
            diffs = diff_engine.iter_remote_only(snapshot)

        planned: list[tuple[FileDiff, SyncAction]] = []
        show_progress = not self.output.quiet and not dry_run
        progress_ctx = (
            Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                transient=True,
            )
            if show_progress
            else nullcontext()
        )

        try:
            with progress_ctx as progress:
                task = (
                    progress.add_task("Comparing files...", total=None)
                    if progress is not None
                    else None
                )

                def on_action(diff: FileDiff, action: SyncAction) -> None:
                    if action != SyncAction.SKIP:
                        planned.append((diff, action))
                    if progress is not None and task is not None:
                        progress.update(task, description=diff.relative_path)

                stats = reconciler.reconcile(
                    diffs, dry_run=dry_run, on_action=on_action
                )
        except Exception as e:
            if not self.output.quiet:
                self.output.error(f"Sync stopped: {e}")
                self.output.info("Run the sync again to finish the remaining files.")
            raise

        logger.debug(
            "Sync of %s took %.2fs: %s", pair.local, time.time() - start_time, stats
        )

        if dry_run:
            self._display_sync_plan(planned)
        if not self.output.quiet:
            self._display_summary(stats, dry_run)

        return stats

    def _prepare_local(self, pair: SyncPair, dry_run: bool) -> None:
        """Validate the local root, creating it for a pull.

        Args:
            pair: Sync pair configuration
            dry_run: Whether this is a dry run
        """
        if pair.local.exists():
            if not pair.local.is_dir():
                raise ValueError(f"Local path is not a directory: {pair.local}")
            return

        if pair.sync_mode == SyncMode.PUSH:
            raise ValueError(f"Local directory does not exist: {pair.local}")

        if not dry_run:
            logger.debug("Creating local directory %s", pair.local)
            pair.local.mkdir(parents=True, exist_ok=True)

    def _snapshot_remote(self, pair: SyncPair) -> dict:
        """List the remote namespace once for this invocation.

        Args:
            pair: Sync pair configuration

        Returns:
            Remote files keyed by relative path
        """
        if self.output.quiet:
            return self.inventory.snapshot(pair.remote)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            task = progress.add_task("Scanning remote directory...", total=None)
            snapshot = self.inventory.snapshot(pair.remote)
            progress.update(
                task, description=f"Found {len(snapshot)} remote file(s)"
            )
        return snapshot

    def _display_sync_plan(self, planned: list[tuple[FileDiff, SyncAction]]) -> None:
        """Display the actions a dry run would take.

        Args:
            planned: Diffs paired with the action they call for
        """
        if self.output.quiet:
            return

        if planned:
            self.output.info("Sync plan:")
        for diff, action in planned:
            source = (
                diff.local_file if action == SyncAction.UPLOAD else diff.remote_file
            )
            size = f", {format_size(source.size)}" if source is not None else ""
            self.output.info(
                f"  {ACTION_LABELS[action]}: {diff.relative_path} ({diff.reason}{size})"
            )
        self.output.print("")

    def _display_summary(self, stats: dict, dry_run: bool) -> None:
        """Display sync summary.

        Args:
            stats: Statistics dictionary
            dry_run: Whether this was a dry run
        """
        if dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Sync complete!")

        total_actions = (
            stats["uploads"]
            + stats["downloads"]
            + stats["deletes_local"]
            + stats["deletes_remote"]
        )

        if total_actions > 0:
            verb = "Planned" if dry_run else "Total"
            self.output.info(f"{verb} actions: {total_actions}")
            if stats["uploads"] > 0:
                self.output.info(f"  Uploaded: {stats['uploads']}")
            if stats["downloads"] > 0:
                self.output.info(f"  Downloaded: {stats['downloads']}")
            if stats["deletes_local"] > 0:
                self.output.info(f"  Deleted locally: {stats['deletes_local']}")
            if stats["deletes_remote"] > 0:
                self.output.info(f"  Deleted remotely: {stats['deletes_remote']}")
        else:
            self.output.info("No changes needed - everything is in sync!")
