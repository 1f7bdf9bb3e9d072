"""
Structured logging configuration for brew-lang-count.

Events are rendered as one JSON object per line on stderr, leaving stdout
to the command results.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

_RESERVED_RECORD_KEYS = frozenset(
    [
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    ]
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class EventLogger:
    """Structured logger emitting named events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"brew_lang_count.{name}")
        self._setup_logger()

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **kwargs}
        getattr(self.logger, level)(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        """Log info level event."""
        self._log("info", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        """Log debug level event."""
        self._log("debug", event_type, **kwargs)


_cache_logger = EventLogger("cache")
_catalog_logger = EventLogger("catalog")
_query_logger = EventLogger("query")


def log_download_started(url: str, file_path: str) -> None:
    """Log the start of a catalog download."""
    _cache_logger.info("catalog_download_started", url=url, file_path=file_path)


def log_download_complete(file_path: str, size_bytes: int, duration_ms: int) -> None:
    """Log a finished catalog download."""
    _cache_logger.info(
        "catalog_downloaded",
        file_path=file_path,
        size_bytes=size_bytes,
        duration_ms=duration_ms,
    )


def log_cache_fresh(file_path: str, age_seconds: Optional[float]) -> None:
    """Log that the cached catalog was reused."""
    _cache_logger.debug(
        "catalog_cache_fresh", file_path=file_path, age_seconds=age_seconds
    )


def log_catalog_loaded(file_path: str, formula_count: int, duration_ms: int) -> None:
    """Log catalog deserialization result."""
    _catalog_logger.info(
        "catalog_loaded",
        file_path=file_path,
        formula_count=formula_count,
        duration_ms=duration_ms,
    )


def log_query_complete(
    query: str,
    match_count: int,
    build_dependency_count: Optional[int] = None,
) -> None:
    """Log the outcome of a dependency query."""
    log_data = {"query": query, "match_count": match_count}
    if build_dependency_count is not None:
        log_data["build_dependency_count"] = build_dependency_count
    _query_logger.info("query_completed", **log_data)


def configure_logging(log_level: str = "WARNING") -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    for event_logger in [_cache_logger, _catalog_logger, _query_logger]:
        event_logger.logger.setLevel(level)


configure_logging()
