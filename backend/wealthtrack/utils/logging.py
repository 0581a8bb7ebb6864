# backend/wealthtrack/utils/logging.py
"""
Logging configuration for WealthTrack.

Provides a single setup_logging() entry point that installs one stdout
handler on the root logger with:
- text or JSON output (LOG_FORMAT)
- correlation ID and caller ID on every record
- quieter third-party HTTP client loggers

Log Levels:
    DEBUG   - Per-point and per-batch detail (forward-fill sizes, upsert batches)
    INFO    - Job milestones (backfill finished, refresh summary)
    WARNING - Recoverable issues (retry attempts, failed batches, skipped assets)
    ERROR   - Failures requiring attention (provider exhausted, unexpected errors)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from wealthtrack.config import settings
from wealthtrack.utils.context import get_caller_id, get_correlation_id

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_TEXT_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(caller_id)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"
NO_CALLER_ID = "-"

NOISY_LOGGERS = [
    "yfinance",
    "peewee",
    "httpx",
    "httpcore",
    "urllib3",
    "asyncio",
    "multipart",
]

# LogRecord attributes that never go into the JSON "extra" block
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "caller_id", "message", "taskName",
})

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


# =============================================================================
# FILTER / FORMATTER
# =============================================================================

class RequestContextFilter(logging.Filter):
    """Stamp correlation_id and caller_id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        record.caller_id = get_caller_id() or NO_CALLER_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line, for log aggregation.

    {"timestamp": ..., "level": "INFO", "logger": "wealthtrack.services...",
     "correlation_id": ..., "caller_id": ..., "message": ..., "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "caller_id": getattr(record, "caller_id", NO_CALLER_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            try:
                json.dumps(value)
                extra[key] = value
            except (TypeError, ValueError):
                extra[key] = str(value)

        if extra:
            entry["extra"] = extra

        return json.dumps(entry)


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Configure the root logger. Call once at startup (API or CLI script).

    Args:
        level: Log level name; defaults to settings.log_level
        log_format: 'text' or 'json'; defaults to settings.log_format
        suppress_noisy_loggers: Raise HTTP client loggers to WARNING
    """
    level_name = level or settings.log_level
    log_level = _get_log_level(level_name)
    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RequestContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name}, format={format_type}",
    )


def _get_log_level(level_name: str) -> int:
    """
    Resolve a level name to its logging constant.

    Raises:
        ValueError: If the name is not a known level
    """
    key = level_name.upper().strip()
    if key not in _LEVELS:
        raise ValueError(
            f"Invalid log level: '{level_name}'. Valid levels are: {', '.join(_LEVELS)}"
        )
    return _LEVELS[key]
