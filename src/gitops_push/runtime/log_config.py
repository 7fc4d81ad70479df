"""Diagnostic logging configuration.

User-facing output goes through CLIConsole. loguru carries the debug trail
(commands run, paths used, composed values) and is silent below WARNING
unless verbose output is requested.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"


def configure_logging(verbose: bool = False, sink: TextIO | None = None) -> None:
    """Install a single stderr sink.

    Args:
        verbose: Log at DEBUG instead of WARNING
        sink: Stream to write to (defaults to stderr)
    """
    logger.remove()
    level = "DEBUG" if verbose else "WARNING"
    logger.add(sink or sys.stderr, format=LOG_FORMAT, level=level, colorize=sink is None)
    logger.debug("Logging configured with level={}", level)
