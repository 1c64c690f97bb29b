"""Request ID middleware for per-request log correlation.

This middleware:
1. Extracts the request ID from the X-Request-ID header if present
2. Generates a new UUID if the header is missing
3. Stores the ID in scope["state"]["request_id"]
4. Adds the ID to the logging context (picked up by the request line)
5. Includes X-Request-ID in response headers
6. Cleans up the logging context after the request completes
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from starlette.datastructures import Headers, MutableHeaders

from logline.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send


def generate_uuid() -> str:
    """Generate a new UUID v4 string."""
    return str(uuid.uuid4())


class RequestIDMiddleware:
    """Put a request ID in the logging context of every HTTP request.

    Install it outside RequestLoggingMiddleware so the ID is in context
    when the request line is built.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware)
        app.add_middleware(RequestIDMiddleware)  # added last, runs first
    """

    header_name = "x-request-id"
    state_key = "request_id"
    log_context_key = "request_id"

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        value = self._extract_or_generate(scope)
        scope.setdefault("state", {})[self.state_key] = value
        set_log_context(**{self.log_context_key: value})

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.append(self.header_name, value)
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            # Prevent context leakage between requests
            clear_log_context()

    def _extract_or_generate(self, scope: Scope) -> str:
        """Return the upstream request ID, the header value, or a new UUID."""
        if existing := scope.get("state", {}).get(self.state_key):
            return existing
        if header_value := Headers(scope=scope).get(self.header_name):
            return header_value
        return generate_uuid()
