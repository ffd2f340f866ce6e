# === FILE: site_auditor/logger.py ===
"""Logging for **SiteAuditor**.

All records go through the ``SiteAuditor`` logger. Components log through
child loggers obtained with :func:`get_logger` (``SiteAuditor.crawler``,
``SiteAuditor.report``...) so a log line names the part of the crawl that
wrote it, while handlers live only on the parent.

Console output goes to stderr: reports printed on stdout stay machine-readable.
An optional log file rotates at 5 MiB, keeping three backups.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
ROOT_NAME: Final[str] = "SiteAuditor"
MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
LOG_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the project logger, or its child for *component*."""
    return logging.getLogger(f"{ROOT_NAME}.{component}" if component else ROOT_NAME)


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Attach stderr (and optionally file) handlers to the project logger.

    With *replace_handlers* the previous handlers are dropped first, so the
    CLI can call this once per invocation without duplicating output.
    """
    root = get_logger()
    root.setLevel(level)
    if replace_handlers:
        for old in list(root.handlers):
            root.removeHandler(old)
            old.close()

    formatter = logging.Formatter(log_format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(str(log_file), maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.propagate = False
    return root


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """CLI shortcut: configure from scratch."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "get_logger", "configure", "init_logging", "DEFAULT_FORMAT"]
