"""Logging configuration for the token service.

JSON-line logs on stdout, one object per record. setup_logging() is
idempotent so repeated calls (tests, reloads) never duplicate handlers.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging import Handler, LogRecord
from typing import Any

__all__ = [
    "JsonFormatter",
    "setup_logging",
    "get_logger",
    "report_error",
]

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else came in via `extra=`.
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}

# Secrets that must never reach a log line even if passed in `extra`.
_REDACTED = {"access_key", "refresh_key", "csrf_key", "key", "token", "csrf_token"}


class JsonFormatter(logging.Formatter):
    """Render records as JSON with ts/level/logger/message plus extras."""

    def format(self, record: LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
        }

        msg = record.msg
        if isinstance(msg, dict):
            payload.update(msg)
        else:
            payload["message"] = record.getMessage()

        for key, value in record.__dict__.items():
            if key in _RESERVED or key in payload:
                continue
            payload[key] = "***" if key in _REDACTED else value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _make_stream_handler(level: int) -> Handler:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def setup_logging(level: str | int = _DEFAULT_LEVEL) -> None:
    """Configure root and uvicorn loggers for JSON output.

    Idempotent: only attaches handlers if none are present.
    """
    root = logging.getLogger()

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if root.handlers:
        return

    root.setLevel(level)
    root.addHandler(_make_stream_handler(level))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.propagate = True
        for h in list(lg.handlers):
            lg.removeHandler(h)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger.

    Usage: logger = get_logger(__name__)
    """
    return logging.getLogger(name if name else __name__)


def report_error(context: str, error: BaseException, *, logger: logging.Logger | None = None) -> None:
    """Default error sink: log `error` under `context`.

    Handler failures are absorbed by `logging` itself (Handler.handleError),
    so this never raises back into token operations.
    """
    lg = logger or get_logger("tokenauth.errors")
    code = getattr(error, "code", None)
    lg.warning(
        "token.failure",
        extra={
            "event": "token_failure",
            "context": context,
            "error_code": getattr(code, "value", type(error).__name__),
            "error": str(error),
        },
    )
