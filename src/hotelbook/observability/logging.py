"""Structured JSON logging for the hotelbook logger tree.

Every module logs through a child of the ``hotelbook`` logger, either via
get_logger() or plain logging.getLogger(__name__); a single JSON handler
on the tree root emits one line per record with the correlation ID and
any ``extra={"extra_fields": {...}}`` merged in.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id

ROOT_LOGGER = "hotelbook"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.environ.get("APP_ROLE", "public"),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_obj["correlationId"] = correlation_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_obj.update(extra_fields)

        return json.dumps(log_obj, default=str)


def configure_logging() -> logging.Logger:
    """Attach the JSON handler to the hotelbook tree once.

    Level comes from LOG_LEVEL (default INFO) and is re-read on every call.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h.formatter, JsonFormatter) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        root.propagate = False
    root.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger under the hotelbook tree with JSON output configured."""
    configure_logging()
    return logging.getLogger(name)
