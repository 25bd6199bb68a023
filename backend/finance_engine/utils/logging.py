# backend/finance_engine/utils/logging.py
"""
Logging configuration for the analytics engine.

The engine modules only ever call ``logging.getLogger(__name__)``. Hosts
that embed the engine call ``setup_logging()`` once at startup; hosts with
their own logging configuration can skip it, or attach
``CorrelationIdFilter`` to their own handlers.

Every record handled by a configured handler carries:
- ``correlation_id``: set by the host via utils.context (request ID, job ID)
- ``call_context``: fields the engine binds per operation (``account_id``)

Log Levels:
    DEBUG   - Per-step detail (sub-period returns, solver iterations)
    INFO    - One line per completed operation
    WARNING - Degraded results (insufficient data, non-convergence, caps hit)

Settings:
    ENGINE_LOG_LEVEL=INFO
    ENGINE_LOG_FORMAT=text   # or json for log aggregation
"""

import json
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, TextIO

from finance_engine.config import settings
from finance_engine.utils.context import get_call_context, get_correlation_id

DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message", "asctime", "correlation_id", "call_context", "taskName",
}


def _jsonable(value: Any) -> Any:
    """Decimals keep their exact digits; other unknown types fall back to str()."""
    if isinstance(value, Decimal):
        return str(value)
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


# =============================================================================
# FILTER & FORMATTER
# =============================================================================

class CorrelationIdFilter(logging.Filter):
    """Stamps records with the correlation ID and the bound call context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        record.call_context = get_call_context()
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    {
        "timestamp": "2024-01-15T10:30:00.123+00:00",
        "level": "INFO",
        "logger": "finance_engine.services.analytics.service",
        "correlation_id": "req-123",
        "message": "Calculating performance for account 7 ...",
        "context": {"account_id": 7},
        "extra": {"twr": "0.0815"}
    }

    ``context`` and ``extra`` are omitted when empty.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        context = getattr(record, "call_context", None)
        if context:
            entry["context"] = {key: _jsonable(value) for key, value in context.items()}

        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        stream: TextIO | None = None,
) -> None:
    """
    Replace the root logger's handlers with one engine-configured handler.

    Args:
        level: Log level name. Defaults to settings.log_level.
        log_format: 'text' or 'json'. Defaults to settings.log_format.
        stream: Output stream (default: stdout)

    Raises:
        ValueError: If level is not a valid log level name
    """
    level_name = level or settings.log_level
    log_level = _get_log_level(level_name)
    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    logging.getLogger(__name__).debug(f"Logging configured: level={level_name}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _get_log_level(level_str: str) -> int:
    """
    Map a level name (case-insensitive) to its logging constant.

    Raises:
        ValueError: If level_str is not a valid log level
    """
    key = level_str.upper().strip()
    if key not in _LEVELS:
        raise ValueError(
            f"Invalid log level: '{level_str}'. Valid levels are: {', '.join(_LEVELS)}"
        )
    return _LEVELS[key]
