"""Opt-in logging for shapesketch.

The library installs only a NullHandler, so nothing is printed unless the
caller asks for it. Profiles and sketches log at DEBUG when they overflow a
cap and when shards are merged; turn that on while tuning caps:

    import shapesketch

    shapesketch.enable_console_logging(level="DEBUG")
    shapesketch.enable_file_logging("logs/profiling.log")
    shapesketch.enable_json_logging()
    shapesketch.configure_from_env()

Environment variables read by ``configure_from_env``:
    SHAPESKETCH_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    SHAPESKETCH_LOG_FILE: Path of a rotating log file
    SHAPESKETCH_LOG_JSON: "1" for one JSON object per line
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "JsonFormatter",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "shapesketch"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Example output:
        {"timestamp": "2026-01-15T10:30:00.123456+00:00", "level": "DEBUG",
         "logger": "shapesketch.merge", "message": "Merged profile 'zip' ..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _get_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _attach(handler: logging.Handler, level: LogLevel | int, formatter: logging.Formatter) -> None:
    logger = _get_logger()
    logger.setLevel(_get_level(level))
    handler.setLevel(_get_level(level))
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _rotating_handler(path: str | Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Log shapesketch records to stderr.

    Args:
        level: Level name or int.
        format: Record format string.
        date_format: Format for ``%(asctime)s``.

    Returns:
        The attached StreamHandler.
    """
    handler = logging.StreamHandler()
    _attach(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Log shapesketch records to a size-rotated file.

    Args:
        path: Log file path. Missing parent directories are created.
        level: Level name or int.
        max_bytes: Size at which the file is rotated. Default 10 MB.
        backup_count: Rotated files kept. Default 5.
        format: Record format string.
        date_format: Format for ``%(asctime)s``.

    Returns:
        The attached RotatingFileHandler.
    """
    handler = _rotating_handler(path, max_bytes, backup_count)
    _attach(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_json_logging(
    level: LogLevel | int = "INFO",
    path: str | Path | None = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Handler:
    """Log shapesketch records as JSON lines.

    Args:
        level: Level name or int.
        path: Write to this size-rotated file instead of stderr.
        max_bytes: Rotation size when ``path`` is given.
        backup_count: Rotated files kept when ``path`` is given.

    Returns:
        The attached handler.
    """
    if path is None:
        handler: logging.Handler = logging.StreamHandler()
    else:
        handler = _rotating_handler(path, max_bytes, backup_count)
    _attach(handler, level, JsonFormatter())
    return handler


def configure_from_env() -> None:
    """Enable logging from ``SHAPESKETCH_*`` environment variables.

    Does nothing unless SHAPESKETCH_LOGGING or SHAPESKETCH_LOG_FILE is set.
    The level defaults to INFO when only a file is given.
    """
    level = os.environ.get("SHAPESKETCH_LOGGING", "").upper()
    log_file = os.environ.get("SHAPESKETCH_LOG_FILE", "")
    use_json = os.environ.get("SHAPESKETCH_LOG_JSON", "") == "1"

    if not level and not log_file:
        return

    level = level or "INFO"
    if use_json:
        enable_json_logging(level=level, path=log_file or None)
    elif log_file:
        enable_file_logging(log_file, level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Set the level of the ``shapesketch`` logger."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Set the level of one submodule logger.

    Args:
        module: Name relative to the package, e.g. ``"shapes.aggregator"``.
        level: Level name or int.
    """
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Remove every handler and silence the ``shapesketch`` logger."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
