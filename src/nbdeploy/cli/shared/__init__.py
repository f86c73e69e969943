"""Shared CLI utilities."""

from .console import CLIConsole, console, with_error_handling
from .logging import configure_logging

__all__ = ["CLIConsole", "console", "with_error_handling", "configure_logging"]
