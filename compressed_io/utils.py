"""
Utility helpers: logging config and directory setup.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import LoggingConfig

_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def ensure_dirs(*paths: Path) -> None:
    """Ensure each directory exists."""
    for p in paths:
        p.mkdir(parents=True, exist_ok=True)


def init_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the package logger with a console handler + optional rotating file handler."""
    config = config or LoggingConfig()
    log_level = getattr(logging, config.level.upper(), logging.INFO)
    logger = logging.getLogger("compressed_io")
    logger.setLevel(log_level)
    logger.propagate = False  # avoid duplicate logs if root has handlers

    # re-initialising replaces our handlers rather than stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console
    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(ch)

    # File (rotating)
    if config.log_file:
        log_file = Path(config.log_file)
        ensure_dirs(log_file.parent)
        fh = RotatingFileHandler(
            log_file, maxBytes=config.max_bytes, backupCount=config.backup_count
        )
        fh.setLevel(log_level)
        fh.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(fh)

    return logger
