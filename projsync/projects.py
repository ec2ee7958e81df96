"""A folder of project directories mirrored to Dropbox."""

import hashlib
import logging
import re
import shutil
from pathlib import Path
from typing import Callable, Optional, Union

from .api import DropboxClient
from .config import PROJECTS_DIR_ENV, config
from .exceptions import ConfigError, ProjectNotFoundError
from .sync.backend import DropboxBackend
from .sync.engine import SyncEngine

logger = logging.getLogger(__name__)

PROJECT_FOLDER_MODE = 0o775

ConfirmCallback = Callable[[str], bool]


class ProjectRepository:
    """Projects are the directories directly under a base folder.

    Each project ``name`` is mirrored against the remote namespace
    ``/name``. Destructive steps ask ``confirm`` first when one is given;
    without it they proceed unasked.

    Examples:
        >>> repo = ProjectRepository("~/projects")
        >>> repo.create("notes")
        >>> repo.push("notes")
    """

    def __init__(
        self,
        base_folder: Optional[Union[str, Path]] = None,
        engine: Optional[SyncEngine] = None,
        confirm: Optional[ConfirmCallback] = None,
    ):
        """Initialize the repository.

        Args:
            base_folder: Folder holding the projects (uses config if not
                provided)
            engine: Sync engine for push/pull; a Dropbox engine built from
                config is used if not provided
            confirm: Optional callable asked a yes/no question before
                overwriting or deleting a project

        Raises:
            ConfigError: If no base folder is given or configured
        """
        if base_folder is None:
            base_folder = config.projects_dir
        if base_folder is None:
            raise ConfigError(
                "Projects folder not configured. "
                f"Please set {PROJECTS_DIR_ENV} environment variable."
            )
        self.base_folder = Path(base_folder).expanduser()
        self._engine = engine
        self.confirm = confirm

    @property
    def engine(self) -> SyncEngine:
        """Sync engine used for push and pull."""
        if self._engine is None:
            self._engine = SyncEngine(DropboxBackend(DropboxClient()))
        return self._engine

    def path(self, name: str) -> Path:
        """Local folder of a project."""
        return self.base_folder / name

    @staticmethod
    def project_id(name: str) -> str:
        """Stable identifier of a project name.

        The name is prefixed with ``Project##`` and hashed with SHA-256.
        """
        return hashlib.sha256(f"Project##{name}".encode()).hexdigest()

    @staticmethod
    def remote_namespace(name: str) -> str:
        """Remote namespace a project is mirrored to."""
        return "/" + name

    def _confirmed(self, question: str) -> bool:
        return self.confirm is None or self.confirm(question)

    def create(self, name: str) -> bool:
        """Create an empty project folder, replacing an existing one.

        Returns:
            False if the caller declined to overwrite, True otherwise
        """
        folder = self.path(name)
        logger.debug("Creating %r at %s", name, folder)

        if folder.exists():
            if not self._confirmed(f"{name} already exists, overwrite it?"):
                return False
            logger.debug("Removing %s", folder)
            shutil.rmtree(folder)

        folder.mkdir(mode=PROJECT_FOLDER_MODE, parents=True)
        return True

    def remove(self, name: str) -> bool:
        """Delete a project folder and everything in it.

        Returns:
            False if the caller declined, True otherwise

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        folder = self.path(name)
        if not folder.is_dir():
            raise ProjectNotFoundError(name)
        if not self._confirmed(f"Are you sure you want to delete {name}?"):
            return False

        logger.debug("Removing %r at %s", name, folder)
        shutil.rmtree(folder)
        return True

    def list(self, *filters: str) -> list[str]:
        """List project names, optionally filtered.

        Args:
            *filters: Regular expressions; a project is listed only if its
                name matches every one of them (``re.search`` semantics)

        Returns:
            Sorted project names

        Raises:
            re.error: If a filter is not a valid regular expression
        """
        compiled = [re.compile(f) for f in filters]
        if not self.base_folder.is_dir():
            return []

        return sorted(
            entry.name
            for entry in self.base_folder.iterdir()
            if entry.is_dir() and all(rx.search(entry.name) for rx in compiled)
        )

    def push(self, name: str, dry_run: bool = False, **kwargs) -> dict:
        """Make the remote copy of a project mirror the local folder.

        Args:
            name: Project name
            dry_run: Only report what would be done
            **kwargs: Extra SyncPair options (ignore, exclude_dot_files, ...)

        Returns:
            Dictionary with sync statistics

        Raises:
            ProjectNotFoundError: If the project folder does not exist
        """
        folder = self.path(name)
        if not folder.is_dir():
            raise ProjectNotFoundError(name)
        return self.engine.push(
            folder, self.remote_namespace(name), dry_run=dry_run, **kwargs
        )

    def pull(self, name: str, dry_run: bool = False, **kwargs) -> dict:
        """Make the local folder of a project mirror its remote copy.

        The local folder is created if it does not exist yet.
        """
        folder = self.path(name)
        if not dry_run:
            folder.mkdir(mode=PROJECT_FOLDER_MODE, parents=True, exist_ok=True)
        return self.engine.pull(
            folder, self.remote_namespace(name), dry_run=dry_run, **kwargs
        )
