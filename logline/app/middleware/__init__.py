"""Request logging middleware stack.

Middleware order matters: RequestIDMiddleware must wrap
RequestLoggingMiddleware so the request id is already in the logging
context when the line is built. ``configure_request_logging`` installs
both in the right order after validating the options.

Example Usage:
    from logline.app.middleware import configure_request_logging

    app = FastAPI()
    configure_request_logging(app, format="json", ignored_paths=["/health"])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from logline.app.middleware.request_id import RequestIDMiddleware
from logline.app.middleware.request_logging import (
    RequestLoggingMiddleware,
    request_facts,
    request_params,
    resolve_settings,
)

if TYPE_CHECKING:
    from starlette.applications import Starlette

    from logline.core.settings import RequestLogSettings

logger = logging.getLogger(__name__)

__all__ = [
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "configure_request_logging",
    "request_facts",
    "request_params",
    "resolve_settings",
]


def configure_request_logging(
    app: Starlette,
    settings: RequestLogSettings | None = None,
    *,
    request_id: bool = True,
    **options: Any,
) -> RequestLogSettings:
    """Validate options and install the request logging middleware stack.

    Options are validated here, before the application serves anything, so
    an invalid option fails startup instead of every request.

    Args:
        app: Starlette or FastAPI application.
        settings: Base settings; loaded from REQUEST_LOG_* env vars when omitted.
        request_id: Also install RequestIDMiddleware (outermost).
        **options: RequestLogSettings fields overriding ``settings``.

    Returns:
        The validated settings the middleware runs with.

    Raises:
        ConfigurationError: If any option is invalid.
    """
    resolved = resolve_settings(settings, **options)

    # Added first, so it runs innermost
    app.add_middleware(RequestLoggingMiddleware, settings=resolved)
    logger.debug(
        "Request logging enabled (format=%s, level=%s, ignored_paths=%s)",
        resolved.format,
        resolved.level,
        resolved.ignored_paths,
    )

    if request_id:
        app.add_middleware(RequestIDMiddleware)

    return resolved
