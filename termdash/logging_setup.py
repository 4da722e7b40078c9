"""Centralized logging configuration for the ``termdash`` package.

curses owns the terminal while the dashboard runs, so log records go to a
file instead of ``stderr``. Entry points call :func:`configure_logging` once;
library modules only call :func:`get_logger` and never attach handlers.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

_PKG_LOGGER_NAME = "termdash"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    env_val = os.getenv("TERMDASH_LOG_LEVEL")
    if env_val:
        return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    log_file: str | Path,
    level: int | str | None = None,
    *,
    fmt: str | None = None,
) -> None:
    """Attach a single ``FileHandler`` to the package root logger.

    ``level`` defaults to the ``TERMDASH_LOG_LEVEL`` environment variable when
    set, otherwise ``logging.INFO``. Repeated calls are ignored.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    path = Path(log_file)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(_parse_level(level))
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )

    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, silent until :func:`configure_logging` runs."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
