"""Logging for the planner: stderr plus a rotating file under ``log_dir``.

Front ends call :func:`configure_logging` with their :class:`AppConfig`;
library modules only ever use ``logging.getLogger(__name__)`` and inherit
the handlers of the ``cryptorecovery`` package logger.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from cryptorecovery.core.constants import DEFAULT_LOG_DIR, DEFAULT_LOG_LEVEL

if TYPE_CHECKING:
    from cryptorecovery.core.config import AppConfig

PACKAGE_LOGGER = "cryptorecovery"

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 10 MB max per file, keep 5 backups
_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5

# logger name -> directory its file handler writes to
_targets: dict[str, Path] = {}


def resolve_level(level: int | str, default: int = logging.INFO) -> int:
    """Accept ``logging.DEBUG`` or ``"debug"`` / ``" WARNING "`` style names."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else default


def setup_logger(
    name: str = PACKAGE_LOGGER,
    log_dir: Path | None = None,
    level: int | str = DEFAULT_LOG_LEVEL,
) -> logging.Logger:
    """Attach console + rotating-file handlers to logger *name*.

    A repeat call with the same *log_dir* only adjusts the level; a new
    *log_dir* replaces the handlers so the file follows the settings.
    """
    log_dir = Path(log_dir) if log_dir is not None else Path(DEFAULT_LOG_DIR)
    numeric = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(numeric)

    if _targets.get(name) == log_dir:
        for handler in logger.handlers:
            handler.setLevel(numeric)
        return logger

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(numeric)
    logger.addHandler(console)

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / f"{name}.log",
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning("Logging to stderr only; cannot write to %s: %s", log_dir, exc)
    else:
        file_handler.setFormatter(formatter)
        file_handler.setLevel(numeric)
        logger.addHandler(file_handler)

    _targets[name] = log_dir
    return logger


def configure_logging(config: AppConfig, verbose: bool = False) -> logging.Logger:
    """Set up the package logger from ``config.log_dir`` and ``config.log_level``.

    *verbose* forces ``DEBUG`` regardless of the configured level.
    """
    level: int | str = logging.DEBUG if verbose else config.log_level
    return setup_logger(PACKAGE_LOGGER, Path(config.log_dir), level)
