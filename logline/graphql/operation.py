"""GraphQL operation type and name detection.

Identifies the kind of a GraphQL operation and a best-effort operation name
from the raw query text with pattern matching. This is not a
parser: nothing is validated, and a name that cannot be found is reported as
the ``"unnamed"`` sentinel rather than as an error.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

UNNAMED = "unnamed"

# Named form:      "query getUser(...)", "  mutation track { ... }"
# Shorthand form:  "{ user { ... } }", "{ user(id: 1) { ... } }"
OPERATION_NAME_PATTERN = re.compile(
    r"""
    ^\s*(?:query|mutation)\s+(?P<named>\w+)
    |
    \{\s*(?P<shorthand>\w+)\s*[({]
    """,
    re.MULTILINE | re.VERBOSE,
)


class OperationType(str, Enum):
    """GraphQL operation kinds reported in the log line."""

    QUERY = "QUERY"
    MUTATION = "MUTATION"


def classify(query_text: str) -> OperationType | None:
    """Return the operation type of a query document.

    Args:
        query_text: Raw query string, possibly multi-line with leading whitespace.

    Returns:
        QUERY for ``query ...`` and the ``{ ... }`` shorthand, MUTATION for
        ``mutation ...``, or None when the text is not recognised as GraphQL.
    """
    text = query_text.strip()
    if text.startswith("query"):
        return OperationType.QUERY
    if text.startswith("mutation"):
        return OperationType.MUTATION
    if text.startswith("{"):
        return OperationType.QUERY
    return None


def extract_name(params: Mapping[str, Any]) -> str:
    """Return the operation name for a GraphQL request.

    An explicit, non-empty ``operationName`` param wins over anything found
    in the query text.

    Args:
        params: Request params holding ``query`` and optionally ``operationName``.

    Returns:
        The operation name, or ``"unnamed"`` when none can be resolved.
    """
    explicit = params.get("operationName")
    if isinstance(explicit, str) and explicit:
        return explicit

    query_text = params.get("query")
    if isinstance(query_text, str):
        match = OPERATION_NAME_PATTERN.search(query_text)
        if match:
            return match.group("named") or match.group("shorthand")

    return UNNAMED
