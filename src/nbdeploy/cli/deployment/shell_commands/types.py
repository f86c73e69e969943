"""Data types for shell command results.

This module contains all dataclasses and type definitions used across
the shell command modules.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "CommandResult",
]


@dataclass
class CommandResult:
    """Result of a command execution.

    Attributes:
        success: Whether the command exited with code 0
        stdout: Captured standard output
        stderr: Captured standard error
        returncode: Process exit code (127 when the executable is missing)
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    def output_tail(self, lines: int = 20) -> str:
        """Return the last lines of combined output for error details."""
        combined = "\n".join(part for part in (self.stdout, self.stderr) if part)
        return "\n".join(combined.strip().splitlines()[-lines:])
