"""Structured logging configuration shared by the gateway entry points."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import os
import sys
from typing import Any
import uuid

from .utils.logging import redact_items

_REDACTED = "***REDACTED***"
_TRUTHY = {"1", "true", "yes", "on"}

_CORRELATION_ID = os.getenv("OPSGATEWAY_CORR_ID") or uuid.uuid4().hex
_JSON_MODE = (os.getenv("OPSGATEWAY_LOG_JSON") or "").strip().lower() in _TRUTHY

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "correlation_id"}


def get_correlation_id() -> str:
    return _CORRELATION_ID


def _timestamp(record: logging.LogRecord) -> str:
    created = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return created.isoformat(timespec="milliseconds")


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    fields = {
        key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS
    }
    return redact_items(fields, placeholder=_REDACTED)


class _CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _CORRELATION_ID
        return True


class TextFormatter(logging.Formatter):
    """Single-line formatter: timestamp, level, correlation id, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{_timestamp(record)} {record.levelname} "
            f"[{getattr(record, 'correlation_id', _CORRELATION_ID)}] "
            f"{record.name}: {record.getMessage()}"
        )
        extras = _extras(record)
        if extras:
            line = f"{line} {json.dumps(extras, default=str, sort_keys=True)}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """Emit one JSON document per record for CloudWatch Logs Insights."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", _CORRELATION_ID),
        }
        payload.update(_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str | int | None = None) -> None:
    """Install the gateway handler on the root logger.

    Calling this more than once replaces the previous handler, which keeps
    warm Lambda containers from duplicating output.
    """

    resolved = level or os.getenv("OPSGATEWAY_LOG_LEVEL") or "INFO"
    if isinstance(resolved, str):
        resolved = resolved.upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_CorrelationFilter())
    handler.setFormatter(JsonFormatter() if _JSON_MODE else TextFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(resolved)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "JsonFormatter",
    "TextFormatter",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
]
