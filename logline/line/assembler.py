"""Request log line assembly.

Merges request and response facts, the optional GraphQL descriptor and
optional vendor fields into a ``LogRecord`` and renders it in the
configured shape:

- ``string``: ``QUERY getUser (/graphql) with {"id":1} - Sent 200 in 4ms``
- ``map``: the record's structured dict
- ``json``: compact JSON text of the map
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from logline.infra.common.result import Result
from logline.line.record import LogRecord, RequestFacts, ResponseFacts
from logline.line.vendor import vendor_fields

if TYPE_CHECKING:
    from logline.core.settings.request_log import RequestLogSettings
    from logline.graphql.inspector import GraphQLDescriptor


def render_string(record: LogRecord) -> str:
    """Render the human-readable line."""
    parts = [record.method, " ", record.operation_name or record.path]
    if record.operation_name is not None and record.operation_name != record.path:
        parts += [" (", record.path, ")"]
    if record.variables is not None:
        parts += [" with ", record.variables]
    parts += [" - ", record.connection_type.value, " ", record.status, " in ", record.timing]
    if record.query is not None:
        parts += ["\nQuery: ", record.query]
    return "".join(parts)


def render_map(record: LogRecord) -> dict[str, Any]:
    return record.to_dict()


def render_json(record: LogRecord) -> str:
    """Render the structured line as compact JSON.

    Serialization is the only step allowed to fail here; a failure yields a
    plain diagnostic line instead of an exception.
    """
    result = Result.attempt(
        json.dumps,
        record.to_dict(),
        ensure_ascii=False,
        separators=(",", ":"),
        catch=(TypeError, ValueError, RecursionError),
    )
    return result.unwrap_or(f"Could not format: {record!r}")


RENDERERS = {
    "string": render_string,
    "map": render_map,
    "json": render_json,
}


class LineAssembler:
    """Build and render request log lines for one middleware instance.

    Example:
        assembler = LineAssembler(RequestLogSettings(format="json"))
        line = assembler.assemble(request, graphql, 1200, ResponseFacts(200))
    """

    def __init__(self, settings: RequestLogSettings) -> None:
        self.settings = settings
        self.render = RENDERERS[settings.format]

    def build(
        self,
        request: RequestFacts,
        graphql: GraphQLDescriptor | None,
        duration_us: int,
        response: ResponseFacts,
    ) -> LogRecord:
        """Merge the per-request facts into a LogRecord.

        Args:
            request: Facts read from the ASGI scope.
            graphql: GraphQL descriptor, or None for plain HTTP requests.
            duration_us: Microseconds from request entry to response start.
            response: Status and delivery mode of the response.

        Returns:
            The record, with vendor fields attached when enabled for a
            structured format.
        """
        record = LogRecord(
            connection_type=response.connection_type,
            method=graphql.operation_type.value if graphql else request.method,
            path=request.path,
            status=str(response.status),
            duration_us=duration_us,
            operation_name=graphql.operation_name if graphql else None,
            query=graphql.query_text if graphql else None,
            client_ip=request.client_ip,
            user_agent=request.user_agent,
            referer=request.referer,
            x_forwarded_for=request.x_forwarded_for,
            x_forwarded_proto=request.x_forwarded_proto,
            x_forwarded_port=request.x_forwarded_port,
            via=request.via,
            variables=graphql.variables_json if graphql else None,
        )

        # The string shape has no place for vendor keys
        if self.settings.include_vendor_fields and self.settings.format != "string":
            record.vendor_fields = vendor_fields(record, request, response)

        return record

    def assemble(
        self,
        request: RequestFacts,
        graphql: GraphQLDescriptor | None,
        duration_us: int,
        response: ResponseFacts,
    ) -> str | dict[str, Any]:
        """Build the record and render it in the configured format."""
        return self.render(self.build(request, graphql, duration_us, response))
