"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
all specialized command modules.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult

# Conventional shell exit code for "command not found"
MISSING_EXECUTABLE_RETURNCODE = 127


class CommandRunner:
    """Low-level command executor with consistent result handling.

    This class provides the foundation for executing shell commands with
    proper output capture and error handling.

    All specialized command modules (make, docker, kubectl, git) use
    this runner for actual command execution. A missing executable or
    working directory is reported as a failed CommandResult rather than
    an exception, so callers only ever branch on ``result.success``.
    """

    def __init__(self, project_root: Path) -> None:
        """Initialize the command runner.

        Args:
            project_root: Path to the repository root directory.
                         Commands will be executed from this directory by default.
        """
        self.project_root = project_root

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = True,
        input_data: str | None = None,
    ) -> CommandResult:
        """Execute a shell command and return structured result.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to project_root)
            capture_output: Whether to capture stdout/stderr
            input_data: Optional text sent to the command's stdin

        Returns:
            CommandResult with success status, output, and return code
        """
        workdir = cwd or self.project_root
        logger.debug(f"Running {' '.join(cmd)} (cwd={workdir})")
        try:
            result = subprocess.run(
                list(cmd),
                cwd=workdir,
                capture_output=capture_output,
                text=True,
                input=input_data,
                check=False,
            )
        except (FileNotFoundError, NotADirectoryError) as e:
            logger.debug(f"Could not start {cmd[0]}: {e}")
            return CommandResult(
                success=False,
                stderr=str(e),
                returncode=MISSING_EXECUTABLE_RETURNCODE,
            )

        if result.returncode != 0:
            logger.debug(f"{cmd[0]} exited with code {result.returncode}")
        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )
