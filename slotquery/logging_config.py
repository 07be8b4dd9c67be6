"""
Logging setup for the command line application.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "WARNING", console: Console | None = None) -> None:
    """
    Route log records through Rich on stderr.

    Args:
        level: Logging level name
        console: Optional console to write to (defaults to stderr)
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
