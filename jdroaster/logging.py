"""
Structured Logging — JSON Output for Production

One JSON object per line: timestamp, level, logger, message, and
whichever whitelisted context fields the caller attached via `extra`.
Raw posting text is never whitelisted.

Usage:
    from jdroaster.logging import get_logger
    logger = get_logger("api")
    logger.info("Analysis complete", extra={"insights_count": 4, "sentences_count": 12})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, Optional


LOG_LEVEL = os.getenv("JDROASTER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("JDROASTER_LOG_FORMAT", "json")  # "json" or "text"

CONTEXT_FIELDS = (
    # catalog
    "rule_id", "rule_count", "catalog_version", "catalog_path",
    # analysis
    "sentences_count", "insights_count", "green_flags_count",
    # http
    "method", "path", "status_code", "duration_ms",
    # failures
    "error", "error_type",
)


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for development and the CLI."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


_FORMATTERS = {"json": JSONFormatter, "text": TextFormatter}


def setup_logging(fmt: Optional[str] = None, stream: Optional[IO[str]] = None) -> logging.Logger:
    """
    Configure the `jdroaster` logger. Safe to call more than once;
    each call replaces the previous handler.

    Args:
        fmt: "json" or "text". Defaults to JDROASTER_LOG_FORMAT.
        stream: Output stream. Defaults to stdout.
    """
    package_logger = logging.getLogger("jdroaster")
    package_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    package_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    formatter_cls = _FORMATTERS.get(fmt or LOG_FORMAT, JSONFormatter)
    handler.setFormatter(formatter_cls())
    package_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the jdroaster namespace."""
    return logging.getLogger(f"jdroaster.{name}")
