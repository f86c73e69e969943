"""Make command abstractions.

Component sources describe their container build through Makefile
targets. This module wraps the targets the deployment workflow invokes.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class MakeCommands:
    """Make-related shell commands.

    Provides operations for:
    - Building a component's container image (``docker-build`` target)
    - Generating a component's manifests (``manifests`` target)
    """

    def __init__(self, runner: CommandRunner, executable: str = "make") -> None:
        """Initialize make commands.

        Args:
            runner: Command runner for executing shell commands
            executable: Make binary to invoke (e.g., "gmake")
        """
        self._runner = runner
        self.executable = executable

    def run_target(
        self,
        component_dir: Path,
        target: str,
        variables: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a make target with ``VAR=value`` overrides.

        Args:
            component_dir: Directory containing the Makefile
            target: Target name
            variables: Command-line variable overrides, in order

        Returns:
            CommandResult with target status
        """
        cmd = [self.executable, target]
        cmd.extend(f"{key}={value}" for key, value in (variables or {}).items())
        return self._runner.run(cmd, cwd=component_dir)

    def docker_build(
        self, component_dir: Path, variables: Mapping[str, str]
    ) -> CommandResult:
        """Run ``make docker-build`` for a component.

        Example:
            >>> make.docker_build(path, {"IMG": "ghcr.io/x/y", "TAG": "v1"})
        """
        return self.run_target(component_dir, "docker-build", variables)

    def manifests(self, component_dir: Path) -> CommandResult:
        """Run ``make manifests`` (CRD and RBAC generation) for a component."""
        return self.run_target(component_dir, "manifests")
