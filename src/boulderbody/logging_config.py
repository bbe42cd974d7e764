"""Logging setup: Rich stderr handler on the package logger."""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "boulderbody"


def setup_logging(level: str = "WARNING") -> None:
    """Attach a RichHandler to the package logger (once) and set its level."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return

    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
