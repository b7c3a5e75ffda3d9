"""Logging configuration for the IconSmith CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from iconsmith.config.models import LoggingSettings

LOG_FILENAME = "iconsmith.log"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: LoggingSettings, log_dir: Path) -> Path | None:
    """Attach a rotating file handler to the ``iconsmith`` logger.

    Args:
        settings: Logging section of the configuration.
        log_dir: Directory receiving ``iconsmith.log``.

    Returns:
        Path | None: The log file path, or None if it could not be opened.
    """
    logger = logging.getLogger("iconsmith")
    logger.setLevel(settings.level.upper())
    for handler in list(logger.handlers):
        if getattr(handler, "_iconsmith", False):
            logger.removeHandler(handler)
            handler.close()

    path = log_dir / LOG_FILENAME
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path,
            maxBytes=max(1, settings.max_size_mb) * 1024 * 1024,
            backupCount=max(0, settings.backup_count),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning("File logging disabled: %s", exc)
        return None
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._iconsmith = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return path


__all__ = ["LOG_FILENAME", "configure_logging"]
