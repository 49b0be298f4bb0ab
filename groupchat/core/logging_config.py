"""Structured logging configuration.

JSON lines in production, readable text in development. The request_id
context variable, set by the request middleware, is attached to every
record emitted while a request is being handled. Bearer tokens, compact
JWTs and ``password=``-style values are redacted before any handler
formats a record.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

# Attributes every LogRecord has; anything else came from ``extra``.
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record, with ``extra`` fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            (name, value)
            for name, value in vars(record).items()
            if name not in _STANDARD_ATTRS and name not in entry
        )

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, default=str)


_REDACTED = "***REDACTED***"

_SECRET_PATTERNS = [
    # Authorization: Bearer <token>
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._\-]{20,}"),
    # Bare compact JWT; every header starts with base64url('{"').
    re.compile(r"\beyJ[A-Za-z0-9_\-]*\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]*"),
    # secret=..., password: ..., token=...
    re.compile(r"(?i)((?:secret|password|token|authorization)[=:]\s*)[^\s,'\"]{4,}"),
]


def _mask(match: "re.Match[str]") -> str:
    return (match.group(1) if match.lastindex else "") + _REDACTED


def redact(text: str) -> str:
    """Replace tokens and credential values in *text*."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(_mask, text)
    return text


class _SecretFilter(logging.Filter):
    """Redact the rendered message and any traceback before formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Mismatched %-args; let the handler report it.
            return True
        record.msg = redact(message)
        record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Libraries whose INFO output would drown out token and request logs.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")


def _formatter_for(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return _JsonFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install one stdout handler on the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Defaults to INFO.
        log_format: ``"json"`` (default) or ``"text"``.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_SecretFilter())
    handler.setFormatter(_formatter_for(fmt))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured", extra={"level": level, "format": fmt})
