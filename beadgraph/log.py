"""Logging setup: stdlib loggers rendered through rich."""

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_ATTACHED = False


def configure_logging(level: str = "WARNING") -> None:
    """Attach a single RichHandler on stderr to the root logger. Safe to call twice."""
    global _HANDLER_ATTACHED

    resolved = getattr(logging, level.upper(), logging.WARNING)
    root = logging.getLogger()
    if not _HANDLER_ATTACHED:
        handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)
        _HANDLER_ATTACHED = True
    root.setLevel(resolved)
