"""Diagnostic logging setup for the CLI."""

import sys

from loguru import logger

DEFAULT_LEVEL = "WARNING"
VERBOSE_LEVEL = "DEBUG"


def configure_logging(verbose: bool = False) -> None:
    """Route loguru output to stderr at WARNING, or DEBUG when verbose."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=VERBOSE_LEVEL if verbose else DEFAULT_LEVEL,
        format="<dim>{time:HH:mm:ss}</dim> <level>{level: <8}</level> {message}",
    )
