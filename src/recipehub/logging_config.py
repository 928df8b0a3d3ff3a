"""Logging setup with per-request context.

Every record emitted while a request is being served carries the request id
and, once the caller is authenticated, the user id. Development gets a
single-line text format; production gets one JSON object per line.
"""

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[str | None] = ContextVar("user_id", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "request_id": request_id_ctx,
    "user_id": user_id_ctx,
}

# Short labels for the text format
_TEXT_LABELS = {"request_id": "req", "user_id": "user"}

QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def current_context() -> dict[str, str]:
    """Context values set for the running task, unset ones omitted."""
    return {name: value for name, var in _CONTEXT_VARS.items() if (value := var.get())}


def _utc_timestamp() -> datetime:
    return datetime.now(timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _utc_timestamp().isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **current_context(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry["location"] = f"{record.filename}:{record.lineno}"
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """``time | LEVEL | logger [req=..., user=...] | message``"""

    def format(self, record: logging.LogRecord) -> str:
        context = ", ".join(
            f"{_TEXT_LABELS[name]}={value[:8]}" for name, value in current_context().items()
        )
        suffix = f" [{context}]" if context else ""
        line = (
            f"{_utc_timestamp():%Y-%m-%d %H:%M:%S} | {record.levelname:<8} | "
            f"{record.name}{suffix} | {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """Adapter that copies the request context into each record's ``extra``."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **current_context()}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), {})


def configure_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        log_level: Level for the root and ``recipehub`` loggers.
        json_format: Emit JSON lines instead of the text format.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if json_format else TextFormatter())

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("recipehub").setLevel(level)
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    get_logger(__name__).info(
        f"Logging configured: level={logging.getLevelName(level)}, "
        f"format={'json' if json_format else 'text'}"
    )


def set_context(request_id: str | None = None, user_id: str | None = None) -> None:
    """Set context values for the rest of the running task."""
    if request_id is not None:
        request_id_ctx.set(request_id)
    if user_id is not None:
        user_id_ctx.set(user_id)


class LoggingContext:
    """Set context values for the duration of a ``with`` block."""

    def __init__(self, **values: str | None):
        unknown = set(values) - set(_CONTEXT_VARS)
        if unknown:
            raise ValueError(f"Unknown logging context: {sorted(unknown)}")
        self._values = {name: value for name, value in values.items() if value is not None}
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> "LoggingContext":
        for name, value in self._values.items():
            var = _CONTEXT_VARS[name]
            self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *args: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
