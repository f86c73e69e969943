"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from .deployment.constants import DeploymentConstants
from .deployment.settings import DeploySettings
from .deployment.shell_commands import ShellCommands
from .shared.console import CLIConsole, console


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    project_root: Path
    commands: ShellCommands
    constants: DeploymentConstants

    @property
    def env_file(self) -> Path:
        """Optional ``.env`` file in the working directory."""
        return self.project_root / ".env"

    def load_settings(self) -> DeploySettings:
        """Read deployment settings from the environment and ``.env``."""
        env_file = self.env_file
        return DeploySettings.from_env(env_file=env_file if env_file.is_file() else None)


def build_cli_context(project_root: Path | None = None) -> CLIContext:
    """Build a fresh CLIContext rooted at ``project_root`` (default: cwd)."""
    project_root = project_root or Path.cwd()

    return CLIContext(
        console=console,
        project_root=project_root,
        commands=ShellCommands(project_root),
        constants=DeploymentConstants(),
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext stored on the Typer context, or build a new one."""
    if ctx is not None and isinstance(ctx.obj, CLIContext):
        return ctx.obj
    return build_cli_context()
