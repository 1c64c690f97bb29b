"""Request log line model and rendering."""

from logline.line.assembler import LineAssembler, render_json, render_map, render_string
from logline.line.record import (
    ConnectionType,
    LogRecord,
    RequestFacts,
    ResponseFacts,
    format_duration,
)
from logline.line.vendor import vendor_fields

__all__ = [
    "ConnectionType",
    "LineAssembler",
    "LogRecord",
    "RequestFacts",
    "ResponseFacts",
    "format_duration",
    "render_json",
    "render_map",
    "render_string",
    "vendor_fields",
]
