# === FILE: site_crawler/logger.py ===
"""Logging setup for site_crawler.

All modules log to the ``SiteCrawler`` logger::

    from site_crawler.logger import logger
    logger.info("Crawl started")

Nothing is configured at import time. The CLI calls :func:`init_logging`;
library users may call :func:`configure` or attach their own handlers.
Console records go to *stderr* because ``crawl`` prints its JSON report on
stdout.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteCrawler"

#: Rotation of the optional log file: 5 MiB, three backups.
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

Level = Union[int, str]


def _build_handlers(log_file: str | Path | None, fmt: str) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(
                str(log_file),
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    formatter = logging.Formatter(fmt)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: Level = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the project logger.

    With *replace_handlers* the previous handlers are closed and removed,
    so repeated calls do not duplicate output. Records are not propagated
    to the root logger.
    """
    project = logging.getLogger(LOGGER_NAME)
    project.setLevel(level)
    if replace_handlers:
        for old in list(project.handlers):
            project.removeHandler(old)
            old.close()
    for handler in _build_handlers(log_file, log_format):
        project.addHandler(handler)
    project.propagate = False
    return project


def init_logging(
    level: Level = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """CLI entry: fresh handlers at *level*."""
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = logging.getLogger(LOGGER_NAME)

__all__ = ["logger", "configure", "init_logging", "DEFAULT_FORMAT", "LOGGER_NAME"]
