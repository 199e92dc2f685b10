"""Logging configuration."""

import logging

from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_FORMAT_SIMPLE = "%(message)s"


def setup_logging(level: int = logging.INFO, use_rich: bool = True) -> logging.Logger:
    """
    Configure the ``newsbias`` logger hierarchy.

    Args:
        level: Log level for the package loggers
        use_rich: Render records with Rich instead of a plain stream handler

    Returns:
        The package root logger
    """
    logger = logging.getLogger("newsbias")
    logger.setLevel(level)

    # Avoid stacking handlers when called more than once
    if logger.handlers:
        return logger

    if use_rich:
        handler: logging.Handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    handler.setLevel(level)
    logger.addHandler(handler)
    return logger