"""GraphQL operation detection for request logging.

Lightweight, parser-free inspection of GraphQL requests:
- classify / extract_name: operation kind and best-effort name
- filter_variables: redaction of sensitive variables
- inspect_request: GraphQLDescriptor for a request, or None
"""

from __future__ import annotations

from .inspector import GraphQLDescriptor, inspect_request
from .operation import UNNAMED, OperationType, classify, extract_name
from .variables import FILTERED, filter_variables

__all__ = [
    "FILTERED",
    "UNNAMED",
    "GraphQLDescriptor",
    "OperationType",
    "classify",
    "extract_name",
    "filter_variables",
    "inspect_request",
]
