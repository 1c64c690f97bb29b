"""Context management for structured logging.

Provides automatic context injection into log records using contextvars,
so the request id assigned at the edge of the stack reaches every log
record written while the request is handled, the request line included.

Each async task gets its own copy of the context, so concurrent requests
never see each other's values.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

from opentelemetry import trace

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Set logging context for the current async task/thread.

    Args:
        **kwargs: Key-value pairs to add to logging context, e.g. request_id.

    Example:
        ```python
        set_log_context(request_id="abc-123")
        logger.info("Processing request")  # record carries request_id
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current async task/thread."""
    _log_context.set({})


def update_log_context(**kwargs: Any) -> None:
    """Alias for set_log_context() when adding to an existing context."""
    set_log_context(**kwargs)


def remove_from_log_context(*keys: str) -> None:
    """Remove specific keys from logging context.

    Args:
        *keys: Keys to remove from context.
    """
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the log context onto each LogRecord.

    Attached to handlers by ``configure_logging`` so formatters (notably
    JSONFormatter) can emit ``request_id`` and friends without any change
    to the logging calls. Existing record attributes are never overwritten.

    The active OpenTelemetry span ids are stamped on the record as well,
    since formatting may happen later on another thread.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = _log_context.get()
        for key, value in context.items():
            if not hasattr(record, key):
                setattr(record, key, value)

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid and not hasattr(record, "trace_id"):
            record.trace_id = format(span_context.trace_id, "032x")
            record.span_id = format(span_context.span_id, "016x")
            record.trace_flags = f"{span_context.trace_flags:02x}"

        return True
