"""
logger.py

Responsibility: Configures Python logging for the whole process: console
output for the container log stream plus a rotating log file.
Does NOT: write application log entries itself; every module logs through
its own logging.getLogger(__name__).
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "flaresync.log"

# 5 MB per file, 7 rotated files kept
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 7

# Handlers installed by configure_logging(), replaced on each call
_installed: list[logging.Handler] = []


def configure_logging(level: str = "INFO", log_dir: str | None = "logs") -> None:
    """
    Installs stdout and rotating-file handlers on the root logger.

    Safe to call more than once; handlers from a previous call are replaced,
    handlers added by anything else are left alone.

    Args:
        level: Root log level name, e.g. "INFO".
        log_dir: Directory for flaresync.log; None disables file logging.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                os.path.join(log_dir, LOG_FILE_NAME),
                maxBytes=_MAX_BYTES,
                backupCount=_BACKUP_COUNT,
                encoding="utf-8",
            )
        )

    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
        _installed.append(handler)
    root.setLevel(log_level)

    # httpx logs every request at INFO; only show it when debugging
    http_level = logging.DEBUG if log_level == logging.DEBUG else logging.WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(http_level)
