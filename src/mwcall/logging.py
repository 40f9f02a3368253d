"""Logging setup for the mwcall CLI.

Library modules only create loggers; handlers are installed here.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def get_log_level(verbose: bool = False, quiet: bool = False) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.INFO


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route mwcall's log records to stderr through rich."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger("mwcall")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(get_log_level(verbose, quiet))
    logger.propagate = False

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
