"""Logging configuration for the CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flowguard.config.app import LoggingSettings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(settings: LoggingSettings | None = None, verbose: bool = False) -> logging.Logger:
    """
    Configure the ``flowguard`` logger.

    Args:
        settings: Logging settings (default: LoggingSettings())
        verbose: If True, force DEBUG level

    Returns:
        The configured package logger
    """
    settings = settings or LoggingSettings()
    level = logging.DEBUG if verbose else getattr(logging, settings.level.upper())

    logger = logging.getLogger("flowguard")
    logger.setLevel(level)

    # Avoid duplicate handlers on repeated CLI invocations in one process
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console)

    if settings.file:
        log_file_path = Path(settings.file).expanduser()
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger
