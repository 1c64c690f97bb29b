"""Custom logging formatters with trace correlation."""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from opentelemetry import trace

# LogRecord attributes that never leak into the JSON object as extras
_SKIP_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }
)


def to_vendor_id(hex_id: str) -> str | None:
    """Convert an OpenTelemetry hex id into Datadog's decimal form.

    Datadog ids are unsigned 64 bit integers, so a 128 bit trace id keeps
    only its lower 64 bits (the last 16 hex digits).

    Args:
        hex_id: 16 or 32 character hex string.

    Returns:
        Decimal string, or None when ``hex_id`` is not valid hex.

    Example:
        >>> to_vendor_id("8e00cc3f6e137140")
        '10232402926187540800'
    """
    try:
        return str(int(hex_id[-16:], 16))
    except ValueError:
        return None


class JSONFormatter(logging.Formatter):
    """Structured JSON Lines (JSONL) formatter with UTC timestamps.

    Formats log records as JSON Lines (JSONL), one JSON object per line,
    ready for ingestion by log aggregation systems like Loki, Elasticsearch
    or Datadog.

    Request log lines are structured: when the message is a mapping (the
    ``map`` line format) or a string holding a JSON object (the ``json``
    line format) its keys are merged into the top-level object instead of
    being nested under ``message``. The formatter's own keys win on
    collision.

    Example output:
        ```json
        {"method": "QUERY", "path": "/graphql", "operation_name": "getUser", "status": "200", "level": "INFO", "logger": "logline.app.middleware.request_logging", "timestamp": "2025-01-01T00:00:00.123Z", "request_id": "abc-123"}
        ```
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
        include_process_info: bool = False,
        include_thread_info: bool = False,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            fmt_keys: Mapping of output keys to LogRecord attributes.
                Default: {"level": "levelname", "logger": "name", "message": "message"}
            static: Static fields to include in every log record (e.g., {"service": "api"}).
            include_process_info: Include process ID and name.
            include_thread_info: Include thread ID and name.
        """
        super().__init__()
        self.fmt_keys = fmt_keys or {
            "level": "levelname",
            "logger": "name",
            "message": "message",
        }
        self.static = static or {}
        self.include_process_info = include_process_info
        self.include_thread_info = include_thread_info

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single-line JSON string.

        Args:
            record: Log record to format.

        Returns:
            Single-line JSON string (JSONL format).
        """
        try:
            return json.dumps(self.build(record), ensure_ascii=False, default=str)
        except (TypeError, ValueError) as exc:
            # Circular references and the like; keep the line, lose the structure
            fallback = {
                "level": record.levelname,
                "logger": record.name,
                "message": f"Could not format: {(record.levelname, record.msg)!r}",
                "format_error": str(exc),
            }
            return json.dumps(fallback, ensure_ascii=False, default=str)

    def build(self, record: logging.LogRecord) -> dict[str, Any]:
        """Build the JSON object for a record without serializing it."""
        structured = _structured_message(record)

        data: dict[str, Any] = {}
        if structured is not None:
            data.update(structured)
            # The structured keys replace the plain message
            fmt_keys = {k: v for k, v in self.fmt_keys.items() if v != "message"}
        else:
            record.message = record.getMessage()
            fmt_keys = self.fmt_keys

        data.update({k: getattr(record, v, None) for k, v in fmt_keys.items()})

        # UTC timestamp in ISO 8601 format with 'Z' suffix
        data["timestamp"] = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        if self.include_process_info:
            data["process_id"] = record.process
            data["process_name"] = record.processName

        if self.include_thread_info:
            data["thread_id"] = record.thread
            data["thread_name"] = record.threadName

        self.add_trace_context(data, record)

        # Newlines are escaped to keep one line per record
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        elif record.exc_text:
            data["exception"] = record.exc_text.replace("\n", "\\n")

        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        if self.static:
            data.update(self.static)

        # Extra fields (context from ContextInjectingFilter, `extra=` kwargs)
        for key, value in record.__dict__.items():
            if key not in _SKIP_KEYS and key not in data:
                data[key] = value

        return data

    def add_trace_context(self, data: dict[str, Any], record: logging.LogRecord) -> None:
        """Add OpenTelemetry trace correlation ids.

        Records formatted on the QueueListener thread have no active span;
        the ids stamped on the record by ContextInjectingFilter are used
        instead.
        """
        ctx = trace.get_current_span().get_span_context()
        if ctx.is_valid:
            data["trace_id"] = format(ctx.trace_id, "032x")
            data["span_id"] = format(ctx.span_id, "016x")
            data["trace_flags"] = f"{ctx.trace_flags:02x}"
        elif getattr(record, "trace_id", None):
            data["trace_id"] = record.trace_id
            data["span_id"] = getattr(record, "span_id", None)
            data["trace_flags"] = getattr(record, "trace_flags", None)


class VendorJSONFormatter(JSONFormatter):
    """JSONFormatter that also emits Datadog correlation ids.

    Adds ``dd.trace_id`` and ``dd.span_id`` (unsigned 64 bit decimal
    strings) next to the OpenTelemetry hex ids so Datadog can link log
    lines to APM traces.
    """

    def add_trace_context(self, data: dict[str, Any], record: logging.LogRecord) -> None:
        super().add_trace_context(data, record)
        if data.get("trace_id") and data.get("span_id"):
            data["dd.trace_id"] = to_vendor_id(data["trace_id"])
            data["dd.span_id"] = to_vendor_id(data["span_id"])


def _structured_message(record: logging.LogRecord) -> Mapping[str, Any] | None:
    """Return the record's message as a mapping when it is structured."""
    if record.args:
        return None
    if isinstance(record.msg, Mapping):
        return record.msg
    if isinstance(record.msg, str) and record.msg.startswith("{"):
        try:
            decoded = json.loads(record.msg)
        except ValueError:
            return None
        if isinstance(decoded, dict):
            return decoded
    return None
