"""Tests for the package logger wiring."""

from __future__ import annotations

import logging
from pathlib import Path

from printrack.config.models import LoggingSettings
from printrack.logging_config import configure_logging


def _handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        handler for handler in logger.handlers if getattr(handler, "_printrack_handler", False)
    ]


def test_file_handler_records_info_lines(tmp_path: Path) -> None:
    log_path = tmp_path / "store" / "printrack.log"
    logger = configure_logging(LoggingSettings(level="WARNING"), log_path=log_path)
    try:
        logging.getLogger("printrack.consensus.learner").info("Seeded pdf from a.pdf")
        for handler in logger.handlers:
            handler.flush()
        assert "Seeded pdf from a.pdf" in log_path.read_text(encoding="utf-8")
    finally:
        configure_logging(LoggingSettings(to_file=False), console_output=False)


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    settings = LoggingSettings(level="DEBUG", to_file=False)
    configure_logging(settings)
    logger = configure_logging(settings)

    assert len(_handlers(logger)) == 1
    assert logger.level == logging.DEBUG
    configure_logging(LoggingSettings(to_file=False), console_output=False)


def test_console_output_can_be_disabled() -> None:
    logger = configure_logging(LoggingSettings(to_file=False), console_output=False)

    handlers = _handlers(logger)
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.NullHandler)
    assert logger.propagate is False
