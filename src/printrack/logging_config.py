"""Logging setup for the printrack CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from printrack.config.models import LoggingSettings

_HANDLER_MARKER = "_printrack_handler"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    settings: LoggingSettings,
    *,
    log_path: Path | None = None,
    console: Console | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Attach console and rotating-file handlers to the ``printrack`` logger.

    Calling this again replaces the handlers installed by an earlier call.

    Args:
        settings: Logging section of the configuration.
        log_path: Target for the rotating log file; skipped when None or disabled.
        console: Rich console for stderr output.
        console_output: When False, only the log file receives records.

    Returns:
        logging.Logger: The configured package logger.
    """

    logger = logging.getLogger("printrack")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    level = logging.getLevelName(settings.level)
    logger.setLevel(level)
    logger.propagate = False

    if console_output:
        stream_handler = RichHandler(
            console=console or Console(stderr=True),
            show_time=False,
            show_path=False,
        )
        stream_handler.setLevel(level)
        setattr(stream_handler, _HANDLER_MARKER, True)
        logger.addHandler(stream_handler)
    else:
        null_handler = logging.NullHandler()
        setattr(null_handler, _HANDLER_MARKER, True)
        logger.addHandler(null_handler)

    if settings.to_file and log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=max(settings.max_size_mb, 1) * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("Unable to open log file %s: %s", log_path, exc)
        else:
            file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
            file_handler.setLevel(min(level, logging.INFO))
            setattr(file_handler, _HANDLER_MARKER, True)
            logger.addHandler(file_handler)
            logger.setLevel(min(level, logging.INFO))

    return logger


__all__ = ["configure_logging"]
