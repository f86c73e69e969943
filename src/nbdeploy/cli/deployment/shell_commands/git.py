"""Git command abstractions.

This module provides commands for Git repository operations, used for
deriving image tags from a source tree and for cloning component sources.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class GitCommands:
    """Git-related shell commands.

    Provides operations for:
    - Descriptive version tags (``git describe``)
    - Shallow clones of remote repositories
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize Git commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    def describe(self, path: Path) -> str | None:
        """Describe the source tree at ``path`` with its nearest tag.

        Runs ``git describe --tags --always --dirty`` inside ``path``. The
        result is either an exact tag, ``<tag>-<count>-g<hash>``, or an
        abbreviated hash when no tag is reachable, with ``-dirty`` appended
        when the working tree has uncommitted changes.

        Args:
            path: Directory inside a git working tree

        Returns:
            The description, or None if git is unavailable, the directory
            does not exist or is not under version control

        Example:
            >>> git.describe(Path("components/notebook-controller"))
            'v1.9.0-3-g1a2b3c4-dirty'
        """
        if not path.is_dir():
            return None
        result = self._runner.run(
            ["git", "describe", "--tags", "--always", "--dirty"], cwd=path
        )
        description = result.stdout.strip()
        if not result.success or not description:
            return None
        return description

    def clone(
        self,
        url: str,
        destination: Path,
        *,
        branch: str | None = None,
        depth: int = 1,
    ) -> CommandResult:
        """Shallow-clone a repository.

        Args:
            url: Remote repository URL
            destination: Target directory (must not exist)
            branch: Branch to check out (default branch when None)
            depth: History depth to fetch

        Returns:
            CommandResult with clone status
        """
        cmd = ["git", "clone", "--depth", str(depth)]
        if branch:
            cmd.extend(["--branch", branch])
        cmd.extend([url, str(destination)])
        return self._runner.run(cmd, cwd=destination.parent)
