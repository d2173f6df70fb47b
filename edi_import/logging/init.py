from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ..config.loader import LogConfig

"""Logging initialization with labeled prefixes.

- Console: stdout, "LABEL message" (INFO|WARN|ERROR|CRITICAL|SUMMARY)
- Optional file sink: size-rotated log file with timestamps
- Standard logging only; modules use logging.getLogger(__name__), which
  propagates to the "edi_import" logger configured here
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "edi_import"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formats records as "<LABEL> <message>"."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        message = f"{level_label} {record.getMessage()}"
        if record.exc_info and record.levelno >= logging.CRITICAL:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def _file_handler(cfg: LogConfig) -> logging.Handler | None:
    if not cfg.file_path:
        return None
    directory = Path(cfg.file_path)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / cfg.file_name
    if cfg.max_file_size_mb > 0:
        handler: logging.Handler = RotatingFileHandler(
            target,
            maxBytes=cfg.max_file_size_mb * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
    else:
        handler = logging.FileHandler(target, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(cfg: LogConfig | None = None) -> logging.Logger:
    """Set up the application logger (idempotent).

    Calling again with a LogConfig after the first call attaches the file
    sink and applies the configured level; the console handler is created
    only once.

    Returns:
        Configured logger instance for the application
    """
    global _logger

    if _logger is None:
        logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(logging.INFO)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.DEBUG)
        console.setFormatter(LabeledFormatter())
        logger.addHandler(console)

        # Prevent propagation to root logger to avoid duplicate output
        logger.propagate = False
        _logger = logger

    if cfg is not None:
        _logger.setLevel(cfg.level)
        if not any(isinstance(h, logging.FileHandler) for h in _logger.handlers):
            handler = _file_handler(cfg)
            if handler is not None:
                _logger.addHandler(handler)
    return _logger


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _logger = None
