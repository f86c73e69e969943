"""Component source repository handling.

The deployment works against a checkout of the notebooks repository. The
checkout comes from one of three places:

- nothing given: a shallow clone of the upstream repository
- a remote URL: a shallow clone of that repository
- a local path: used in place, never modified beyond image pins

Clones live under the system temp directory and are removed when the
workspace closes.
"""

from __future__ import annotations

import re
import shutil
import tempfile
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

from loguru import logger

from .constants import DeploymentConstants
from .errors import CloneFailed, RepositoryInvalid

if TYPE_CHECKING:
    from ..shared.console import CLIConsole
    from .shell_commands import ShellCommands

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def is_url(source: str, constants: DeploymentConstants | None = None) -> bool:
    """Whether ``source`` names a remote repository rather than a local path."""
    constants = constants or DeploymentConstants()
    return bool(constants.REMOTE_URL_PATTERN.match(source))


def clone_dir_name(url: str) -> str:
    """Directory name for a clone of ``url``.

    The last path segment minus ``.git``, with every character outside
    ``[a-zA-Z0-9._-]`` replaced by ``-``.

    Example:
        >>> clone_dir_name("git@github.com:me/my notebooks.git")
        'my-notebooks'
    """
    name = url.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return _UNSAFE_NAME_CHARS.sub("-", name) or "repository"


def temp_base() -> Path:
    """Resolved system temp directory."""
    return Path(tempfile.gettempdir()).resolve()


def safe_remove_dir(path: Path, base: Path | None = None) -> bool:
    """Remove ``path`` only if it lies strictly inside the temp directory.

    Args:
        path: Directory to remove
        base: Directory that must contain ``path`` (defaults to the system
              temp directory)

    Returns:
        True if the directory is gone afterwards, False if removal was refused
    """
    base = (base or temp_base()).resolve()
    target = path.resolve()
    if target == base or base not in target.parents:
        logger.error(f"Refusing to remove directory outside of temp directory: {path}")
        return False
    if target.is_dir():
        shutil.rmtree(target)
    return True


class RepositoryWorkspace:
    """Context manager yielding the root of a usable component repository.

    Example:
        >>> with RepositoryWorkspace(commands, console, source=None) as repo_root:
        ...     deployer = ComponentDeployer(commands, console, repo_root, settings)
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        source: str | None = None,
        *,
        base: Path | None = None,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the workspace.

        Args:
            commands: Shell command executor
            console: CLI console for output
            source: Local path, remote URL, or None for the upstream repository
            base: Directory clones are placed in (defaults to the temp directory)
            constants: Optional deployment constants (uses defaults if not provided)
        """
        self.commands = commands
        self.console = console
        self.source = source
        self.base = base or temp_base()
        self.constants = constants or DeploymentConstants()
        self.root: Path | None = None
        self._cloned: list[Path] = []

    def __enter__(self) -> Path:
        try:
            self.root = self.open()
        except BaseException:
            self.close()
            raise
        return self.root

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def open(self) -> Path:
        """Resolve the source into a repository root.

        Raises:
            CloneFailed: If a clone failed
            RepositoryInvalid: If the path is missing or not a notebooks
                repository
        """
        if not self.source:
            root = self._clone_default()
        elif is_url(self.source, self.constants):
            root = self._clone_url(self.source)
        else:
            root = self._use_local(self.source)

        if not (root / self.constants.COMPONENTS_DIR).is_dir():
            raise RepositoryInvalid(
                "Repository does not appear to be kubeflow-notebooks-v1",
                details=f"Missing '{self.constants.COMPONENTS_DIR}' directory in {root}",
            )
        return root

    def close(self) -> None:
        """Remove every directory this workspace cloned."""
        while self._cloned:
            path = self._cloned.pop()
            logger.debug(f"Cleaning up cloned repository {path}")
            safe_remove_dir(path, self.base)

    def _clone_default(self) -> Path:
        destination = self.base / self.constants.DEFAULT_CLONE_DIR_NAME
        self.console.info(
            f"No repository specified, cloning kubeflow/notebooks "
            f"({self.constants.DEFAULT_REPO_BRANCH} branch) to {destination}..."
        )
        self._prepare(destination)
        result = self.commands.git.clone(
            self.constants.DEFAULT_REPO_URL,
            destination,
            branch=self.constants.DEFAULT_REPO_BRANCH,
        )
        if not result.success:
            raise CloneFailed(
                "Failed to clone kubeflow/notebooks repository",
                details=result.output_tail() or None,
            )
        self._cloned.append(destination)
        self.console.ok(f"Repository cloned successfully to {destination}")
        return destination

    def _clone_url(self, url: str) -> Path:
        destination = self.base / clone_dir_name(url)
        self.console.info(f"Cloning repository from {url} to {destination}...")
        self._prepare(destination)

        result = self.commands.git.clone(
            url, destination, branch=self.constants.DEFAULT_REPO_BRANCH
        )
        if not result.success:
            self.console.warn(
                f"Failed to clone {self.constants.DEFAULT_REPO_BRANCH} branch, "
                f"trying default branch..."
            )
            self._prepare(destination)
            result = self.commands.git.clone(url, destination)
        if not result.success:
            raise CloneFailed(
                f"Failed to clone repository from {url}",
                details=result.output_tail() or None,
            )
        self._cloned.append(destination)
        self.console.ok(f"Repository cloned successfully to {destination}")
        return destination

    def _use_local(self, source: str) -> Path:
        path = Path(source).expanduser()
        if not path.is_dir():
            raise RepositoryInvalid(f"Local repository path does not exist: {source}")
        root = path.resolve()
        self.console.info(f"Using local repository at {root}")
        return root

    def _prepare(self, destination: Path) -> None:
        """Clear a stale clone target and make sure its parent exists."""
        if destination.exists() and not safe_remove_dir(destination, self.base):
            raise CloneFailed(f"Cannot reuse clone directory {destination}")
        destination.parent.mkdir(parents=True, exist_ok=True)
