"""Sync pair configuration."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..utils import normalize_namespace
from .modes import SyncMode
from .scanner import SkipCallback, build_skip_filter


@dataclass
class SyncPair:
    """A local directory mirrored against a remote namespace.

    Examples:
        >>> pair = SyncPair(Path("/home/user/proj"), "proj/", SyncMode.PUSH)
        >>> pair.remote
        '/proj'
    """

    local: Path
    """Local root directory"""

    remote: str
    """Remote namespace, normalized to ``/a/b`` ("" for the root)"""

    sync_mode: SyncMode = SyncMode.PUSH
    """Which side is authoritative"""

    ignore: list[str] = field(default_factory=list)
    """Glob patterns of relative paths to leave out of the sync"""

    exclude_dot_files: bool = False
    """Whether to leave out files and folders starting with a dot"""

    skip_vcs: bool = True
    """Whether to leave out version-control metadata (.git, .hg, ...)"""

    use_local_trash: bool = False
    """Whether local deletes go to the system trash instead of unlinking"""

    skip: Optional[SkipCallback] = None
    """Extra caller-supplied skip predicate"""

    def __post_init__(self) -> None:
        if isinstance(self.local, str):
            self.local = Path(self.local)
        if isinstance(self.sync_mode, str) and not isinstance(
            self.sync_mode, SyncMode
        ):
            self.sync_mode = SyncMode.from_string(self.sync_mode)
        self.remote = normalize_namespace(self.remote)

    def skip_filter(self) -> Optional[SkipCallback]:
        """Build the skip predicate for this pair's options."""
        return build_skip_filter(
            ignore_patterns=self.ignore,
            exclude_dot_files=self.exclude_dot_files,
            skip_vcs=self.skip_vcs,
            extra=self.skip,
        )
