"""Module loggers sharing one stderr handler, levelled by THREADCLEAR_LOG_LEVEL."""

from __future__ import annotations

import logging
import os
from functools import cache

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level() -> int:
    name = os.getenv("THREADCLEAR_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


@cache
def _configure_root() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(_level())


def get_logger(name: str) -> logging.Logger:
    """Logger for `name`; the first call installs the shared handler."""
    _configure_root()
    logger = logging.getLogger(name)
    logger.setLevel(_level())
    return logger
