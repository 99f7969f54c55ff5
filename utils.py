"""
General utility functions for the CLI application.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False) -> None:
    """
    Route the application's log records through Rich.

    Warnings and errors are shown by default; `verbose` lowers the threshold to
    DEBUG so every pipeline stage and subprocess command is visible. Safe to
    call more than once: earlier handlers are replaced.

    Args:
        verbose: Enable debug output.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_path=verbose,
                rich_tracebacks=True,
            )
        ],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)

