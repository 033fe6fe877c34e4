"""Logging configuration: rich-formatted log records on stderr."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """
    Configure logging with a rich handler.

    Args:
        verbose: Enable DEBUG level logging
        quiet: Suppress all but ERROR level logging

    Returns:
        The ``semver_impact`` package logger
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)

    logger = logging.getLogger("semver_impact")
    logger.setLevel(level)
    return logger
