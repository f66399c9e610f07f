"""
revenue_engines.tracer -- REVENUE_ENGINE_TRACE records for engine calls.

Aggregate engine entry points (totals, summaries, breakdowns, portfolio
segmentation) are decorated with ``@traced_engine``. Each call emits one
DEBUG record carrying the engine name and version, a fingerprint of the
arguments that determine the result scope (year, overrides) and the
elapsed time, so two report runs can be compared call by call.

The decorator only reads arguments. It never changes what the wrapped
engine returns and adds no I/O beyond the log record.

Usage:
    @traced_engine("aggregation", "1.0", fingerprint_fields=("year",))
    def total_estimated_value(estimates, year, notifier=None, policy=DEFAULT_POLICY):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import logging
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from revenue_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_TYPE = "REVENUE_ENGINE_TRACE"
FINGERPRINT_LENGTH = 16


def _fingerprint_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value)
    return str(value)


def input_fingerprint(fields: tuple[str, ...], arguments: Mapping[str, Any]) -> str:
    """
    SHA-256 prefix over the named arguments.

    Unbound fields hash as null. Mapping keys are sorted, so two override
    dicts with the same entries in a different order fingerprint equally.
    """
    selected = {name: arguments.get(name) for name in fields}
    canonical = json.dumps(selected, sort_keys=True, default=_fingerprint_default)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Wrap an engine function so every call logs a REVENUE_ENGINE_TRACE record."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            if logger.isEnabledFor(logging.DEBUG):
                arguments = signature.bind_partial(*args, **kwargs).arguments
                logger.debug(TRACE_TYPE, extra={
                    "trace_type": TRACE_TYPE,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": input_fingerprint(fingerprint_fields, arguments),
                    "duration_ms": elapsed_ms,
                })
            return result

        return wrapper

    return decorator
