"""Datadog HTTP attribute naming for request lines.

See https://docs.datadoghq.com/logs/log_configuration/attributes_naming_convention/#http-requests
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from logline.infra.logging.context import get_log_context

if TYPE_CHECKING:
    from logline.line.record import LogRecord, RequestFacts, ResponseFacts


def vendor_fields(
    record: LogRecord,
    request: RequestFacts,
    response: ResponseFacts,
) -> dict[str, Any]:
    """Build the vendor key set mirroring the standard line fields.

    ``http.url`` and ``http.method`` repeat the line's path and method (so a
    GraphQL request reports its operation type), ``http.request_id`` comes
    from the ambient log context and ``duration`` is in nanoseconds.
    """
    return {
        "http.url": record.path,
        "http.status_code": response.status,
        "http.method": record.method,
        "http.referer": record.referer,
        "http.request_id": get_log_context().get("request_id"),
        "http.useragent": record.user_agent,
        "http.version": f"HTTP/{request.http_version}" if request.http_version else None,
        "duration": record.duration_us * 1000,
        "network.client.ip": record.client_ip,
    }
