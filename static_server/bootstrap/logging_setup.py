"""Logging configuration for the static file server.

Methods and paths are logged as the client sent them, so string fields go
through :func:`sanitize_value` before they are written.
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from static_server.domain.connection_id import ConnectionLoggerAdapter

LOGGER_NAME = "static_server"
LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(threadName)s [%(connection_id)s] "
    "%(component)s :: %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5
MAX_FIELD_LENGTH = 256
STREAM_DESTINATIONS = ("stdout", "stderr")

EXTRA_KEYS = frozenset(
    {
        "client",
        "method",
        "route",
        "path",
        "status_code",
        "content_type",
        "bytes_out",
        "duration_ms",
        "error_type",
        "error",
        "host",
        "port",
        "directory",
        "workers",
        "queue_limit",
        "capacity",
        "active_connections",
        "request_timeout",
        "socket_timeout",
        "grace_seconds",
        "log_destination",
        "log_level",
        "use_json",
        "signal",
    }
)


def sanitize_value(value: str) -> str:
    """Escape non-printable characters and truncate overly long values."""
    if value.isprintable() and len(value) <= MAX_FIELD_LENGTH:
        return value
    escaped = "".join(
        char if char.isprintable() else char.encode("unicode_escape").decode("ascii")
        for char in value
    )
    if len(escaped) > MAX_FIELD_LENGTH:
        return escaped[:MAX_FIELD_LENGTH] + "..."
    return escaped


class RecordDefaultsFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Fill in the adapter fields for records logged without the adapter."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "connection_id"):
            record.connection_id = "-"
        if not hasattr(record, "component"):
            record.component = record.name
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line with sorted keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "thread": record.threadName,
            "connection_id": getattr(record, "connection_id", "-"),
            "component": getattr(record, "component", record.name),
            "message": sanitize_value(record.getMessage()),
        }
        event = getattr(record, "event", None)
        if event is not None:
            payload["event"] = event

        for key in EXTRA_KEYS.intersection(record.__dict__):
            value = record.__dict__[key]
            payload[key] = sanitize_value(value) if isinstance(value, str) else value

        if record.exc_info:
            payload["exc_type"] = record.exc_info[0].__name__
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, sort_keys=True, default=str)


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handler(
    destination: Optional[str], level: int, use_json: bool = True
) -> logging.Handler:
    """Return a stream handler for stdout/stderr, otherwise a rotating file."""
    target = (destination or "stdout").lower()
    if target in STREAM_DESTINATIONS:
        handler: logging.Handler = logging.StreamHandler(getattr(sys, target))
    else:
        log_path = Path(destination)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
    handler.setLevel(level)
    handler.addFilter(RecordDefaultsFilter())
    handler.setFormatter(
        JsonFormatter(datefmt=DATE_FORMAT)
        if use_json
        else logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    )
    return handler


def configure_logging(
    level: str = "INFO", destination: Optional[str] = None, use_json: bool = True
) -> ConnectionLoggerAdapter:
    """Install the single handler of the ``static_server`` logger tree.

    Any handler left from an earlier call is closed first, so the function
    can be called again to switch destination. Records do not propagate to
    the root logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    numeric_level = _resolve_level(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(numeric_level)
    logger.propagate = False
    logger.addHandler(_build_handler(destination, numeric_level, use_json))

    adapter = ConnectionLoggerAdapter(logger, {})
    adapter.info(
        "Logging configured",
        extra={
            "event": "logging_configured",
            "log_level": logging.getLevelName(numeric_level),
            "log_destination": destination or "stdout",
            "use_json": use_json,
        },
    )
    return adapter
