"""GraphQL request inspection.

Decides whether a request carries a GraphQL operation and, if so, describes
it for the request log line. Inspection never raises for malformed input:
anything that does not look like a GraphQL POST is reported as ``None`` and
logged as a plain HTTP request.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from logline.graphql.operation import UNNAMED, OperationType, classify, extract_name
from logline.graphql.variables import filter_variables
from logline.infra.common.result import Result

if TYPE_CHECKING:
    from logline.core.settings.request_log import RequestLogSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GraphQLDescriptor:
    """What the log line needs to know about a GraphQL operation.

    Attributes:
        operation_type: QUERY or MUTATION.
        operation_name: Resolved name, or ``"unnamed"``.
        query_text: Raw query, kept only for unnamed operations when enabled.
        variables_json: Filtered variables encoded as compact JSON, when enabled.
    """

    operation_type: OperationType
    operation_name: str
    query_text: str | None = None
    variables_json: str | None = None

    @property
    def is_unnamed(self) -> bool:
        return self.operation_name == UNNAMED


def inspect_request(
    method: str,
    params: Mapping[str, Any],
    settings: RequestLogSettings,
) -> GraphQLDescriptor | None:
    """Describe the GraphQL operation carried by a request.

    Only POST requests whose ``query`` param is a string are considered.
    Lists, maps, numbers or a missing ``query`` all fall through to the
    "not GraphQL" branch.

    Args:
        method: HTTP method of the request.
        params: Query-string and body params of the request.
        settings: Request logging options.

    Returns:
        GraphQLDescriptor, or None when the request is not a GraphQL operation.
    """
    if method != "POST":
        return None

    query_text = params.get("query")
    match query_text:
        case str():
            operation_type = classify(query_text)
        case _:
            return None

    if operation_type is None:
        return None

    operation_name = extract_name(params)

    query = None
    if operation_name == UNNAMED and settings.include_unnamed_queries:
        query = query_text

    variables_json = None
    if settings.include_variables:
        match params.get("variables"):
            case Mapping() as variables:
                variables_json = _encode_variables(variables, settings.filter_variables)
            case _:
                pass

    return GraphQLDescriptor(
        operation_type=operation_type,
        operation_name=operation_name,
        query_text=query,
        variables_json=variables_json,
    )


def _encode_variables(variables: Mapping[str, Any], deny_list: list[str]) -> str | None:
    """Filter and encode variables; an encoding failure omits them."""
    filtered = filter_variables(variables, deny_list)
    result = Result.attempt(
        json.dumps,
        filtered,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
        catch=(TypeError, ValueError, RecursionError),
    )
    if not result:
        logger.debug("GraphQL variables could not be encoded: %s", result.error)
    return result.data
