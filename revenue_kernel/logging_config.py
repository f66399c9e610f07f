"""
Structured logging for the revenue kernel.

Every record under the ``revenue_kernel`` logger tree is rendered as one
JSON object per line:

    {"ts": ..., "level": "INFO", "logger": "revenue_kernel.engines.segmentation",
     "message": "portfolio_segmented", "year": "2025", "account_count": 42, ...}

The envelope (``ts``, ``level``, ``logger``, ``message``) is always present.
Request-scoped fields bound through ``LogContext`` come next, then the
``extra=`` fields of the call. Exceptions logged with ``exc_info`` add
``exc_type``, ``exc_message``, the error ``code`` of RevenueEngineError
subclasses and their public attributes as ``exc_<name>``.

Usage:
    from revenue_kernel.logging_config import LogContext, get_logger

    logger = get_logger("services.portfolio")
    with LogContext.bind(correlation_id=request_id):
        logger.info("segments_recomputed", extra={"year": "2025"})
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

_ROOT_NAME = "revenue_kernel"


class LogContext:
    """
    Request-scoped fields attached to every record.

    Backed by a single ContextVar holding an immutable snapshot, so each
    thread and each asyncio task sees its own fields.
    """

    FIELDS = ("correlation_id", "actor_id", "account_id", "trace_id")

    _fields: ContextVar[dict[str, str]] = ContextVar("revenue_log_context", default={})

    @classmethod
    def _checked(cls, values: dict[str, str | None]) -> dict[str, str]:
        unknown = set(values) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        return {k: v for k, v in values.items() if v is not None}

    @classmethod
    def set(cls, **values: str | None) -> None:
        """Merge fields into the current context; None values are ignored."""
        cls._fields.set({**cls._fields.get(), **cls._checked(values)})

    @classmethod
    def get_all(cls) -> dict[str, str]:
        current = cls._fields.get()
        return {name: current[name] for name in cls.FIELDS if name in current}

    @classmethod
    def clear(cls) -> None:
        cls._fields.set({})

    @classmethod
    @contextmanager
    def bind(cls, **values: str | None) -> Iterator[type[LogContext]]:
        """Set fields for the duration of a ``with`` block."""
        token = cls._fields.set({**cls._fields.get(), **cls._checked(values)})
        try:
            yield cls
        finally:
            cls._fields.reset(token)


# Attributes every LogRecord carries; anything else came from ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Render a LogRecord as a single line of JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))
        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger ``revenue_kernel.<name>``."""
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


_state_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``revenue_kernel`` logger.

    Only the first call has an effect until ``reset_logging`` is called.
    Records do not propagate to the root logger.
    """
    global _configured
    with _state_lock:
        if _configured:
            return
        _configured = True

        if handler is None:
            handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setFormatter(StructuredFormatter())

        root = logging.getLogger(_ROOT_NAME)
        root.setLevel(level)
        root.addHandler(handler)
        root.propagate = False


def reset_logging() -> None:
    """Undo ``configure_logging``. Test helper."""
    global _configured
    with _state_lock:
        _configured = False
        root = logging.getLogger(_ROOT_NAME)
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.setLevel(logging.WARNING)
        root.propagate = True
