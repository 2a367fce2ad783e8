"""Structured logging configuration.

Every record is emitted as one JSON object. Call sites pass structured fields
through ``extra=``; message strings are short snake_case event names so logs
can be filtered without parsing free text.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping

_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs JSON-structured log records."""

    def __init__(self, service: str = "shift_guard") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
        }

        # Fields attached through StructuredLogger
        if hasattr(record, "extra_fields"):
            log_dict.update(record.extra_fields)

        # Plain ``logger.info(..., extra={...})`` calls land on the record itself
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and key != "extra_fields" and key not in log_dict:
                log_dict[key] = value

        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_dict, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that merges default fields into every record."""

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = {"extra_fields": extra}
        return msg, kwargs


_configured = False


def configure_logging(
    level: int | str | None = None,
    structured: bool | None = None,
) -> None:
    """Configure root logging once per process.

    ``SHIFTGUARD_LOG_LEVEL`` and ``SHIFTGUARD_LOG_FORMAT`` (json|text) are
    consulted when the arguments are omitted.
    """
    global _configured
    if _configured:
        return

    if level is None:
        level = os.getenv("SHIFTGUARD_LOG_LEVEL", "INFO").upper()
    if structured is None:
        structured = os.getenv("SHIFTGUARD_LOG_FORMAT", "json").lower() != "text"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)
    _configured = True


def get_logger(name: str, **extra: Any) -> StructuredLogger:
    """Get a structured logger with optional default extra fields."""
    configure_logging()
    return StructuredLogger(logging.getLogger(name), extra)
