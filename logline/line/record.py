"""Request log line data model.

``RequestFacts`` and ``ResponseFacts`` hold what the middleware read from
the ASGI scope and the ``http.response.start`` message. ``LogRecord`` is
the merged, render-ready line. None of these outlive the request.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConnectionType(str, Enum):
    """How the response body was delivered."""

    SENT = "Sent"
    CHUNKED = "Chunked"


@dataclass(frozen=True, slots=True)
class RequestFacts:
    """Per-request inputs read once from the ASGI scope."""

    method: str
    path: str
    client_ip: str | None = None
    user_agent: str | None = None
    referer: str | None = None
    x_forwarded_for: str | None = None
    x_forwarded_proto: str | None = None
    x_forwarded_port: str | None = None
    via: str | None = None
    http_version: str | None = None


@dataclass(frozen=True, slots=True)
class ResponseFacts:
    """Status and delivery mode of the response."""

    status: int
    chunked: bool = False

    @property
    def connection_type(self) -> ConnectionType:
        return ConnectionType.CHUNKED if self.chunked else ConnectionType.SENT


def format_duration(duration_us: int) -> str:
    """Render a microsecond duration for humans.

    Durations above 1000µs are shown in whole milliseconds (truncated),
    anything else in microseconds.

    Example:
        >>> format_duration(1500)
        '1ms'
        >>> format_duration(1000)
        '1000µs'
    """
    if duration_us > 1000:
        return f"{duration_us // 1000}ms"
    return f"{duration_us}µs"


@dataclass(slots=True)
class LogRecord:
    """One request log line before rendering.

    Attributes:
        connection_type: Sent or Chunked; used by the string shape only.
        method: Literal HTTP method, or the GraphQL operation type.
        path: Literal request path.
        status: Status code as a string.
        duration_us: Elapsed microseconds between request entry and response start.
        operation_name: GraphQL operation name, when the request is GraphQL.
        query: Raw query text of an unnamed GraphQL operation.
        variables: Pre-encoded JSON of the filtered GraphQL variables.
        vendor_fields: Extra keys merged after the standard ones.
    """

    connection_type: ConnectionType
    method: str
    path: str
    status: str
    duration_us: int
    operation_name: str | None = None
    query: str | None = None
    client_ip: str | None = None
    user_agent: str | None = None
    referer: str | None = None
    x_forwarded_for: str | None = None
    x_forwarded_proto: str | None = None
    x_forwarded_port: str | None = None
    via: str | None = None
    variables: str | None = None
    vendor_fields: Mapping[str, Any] | None = field(default=None, repr=False)

    @property
    def timing(self) -> str:
        return format_duration(self.duration_us)

    @property
    def duration_ms(self) -> float:
        return self.duration_us / 1000

    def fields(self) -> Iterator[tuple[str, Any]]:
        """Yield the structured ``(key, value)`` pairs in line order.

        Absent values are skipped. ``connection_type`` is not part of the
        structured shape.
        """
        pairs = (
            ("method", self.method),
            ("path", self.path),
            ("operation_name", self.operation_name),
            ("query", self.query),
            ("status", self.status),
            ("timing", self.timing),
            ("duration_ms", self.duration_ms),
            ("client_ip", self.client_ip),
            ("user_agent", self.user_agent),
            ("referer", self.referer),
            ("x_forwarded_for", self.x_forwarded_for),
            ("x_forwarded_proto", self.x_forwarded_proto),
            ("x_forwarded_port", self.x_forwarded_port),
            ("via", self.via),
            ("variables", self.variables),
        )
        for key, value in pairs:
            if value is not None:
                yield key, value

        if self.vendor_fields:
            for key, value in self.vendor_fields.items():
                if value is not None:
                    yield key, value

    def to_dict(self) -> dict[str, Any]:
        return dict(self.fields())
