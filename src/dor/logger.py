"""Logging setup for the ``pm`` command line tool.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by the command line entry point. Report tables go to
stdout, so log records go to stderr.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str = "dor", level: str = "INFO") -> logging.Logger:
    """Configure the package logger with a single stderr handler.

    Calling it again only updates the level.

    :param name: Logger name (the package root by default).
    :param level: Level name such as ``"DEBUG"`` or ``"INFO"``.
    :returns: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    return logger
