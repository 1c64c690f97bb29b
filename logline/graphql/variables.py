"""Redaction of sensitive GraphQL variables."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any

from logline.core.settings.request_log import DEFAULT_FILTERED_VARIABLES

FILTERED = "[FILTERED]"


def filter_variables(
    variables: Mapping[str, Any],
    deny_list: Collection[str] = DEFAULT_FILTERED_VARIABLES,
) -> dict[str, Any]:
    """Return a copy of ``variables`` with deny-listed values replaced.

    Only top-level keys are matched. The input mapping is never mutated, and
    filtering an already filtered mapping with the same deny list returns an
    equal mapping.

    Args:
        variables: GraphQL variables from the request body.
        deny_list: Variable names whose values must not be logged.

    Returns:
        New dict with the same keys; deny-listed values become ``"[FILTERED]"``.
    """
    denied = frozenset(deny_list)
    return {key: FILTERED if key in denied else value for key, value in variables.items()}
