"""Single-line request logging middleware.

Condenses each HTTP request/response pair into one log line, emitted when
the response starts:

    QUERY getUser (/graphql) with {"user_uid":"abc"} - Sent 200 in 4ms
    GET /api/users - Chunked 200 in 812µs

GraphQL POST requests are reported by operation type and name instead of
the HTTP method. Successful lines can be sampled or dropped per path;
redirects and errors are always logged. Building the line never affects
the response: any failure is logged as a warning and swallowed.
"""

from __future__ import annotations

import json
import logging
import time
from collections import deque
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from starlette.datastructures import Headers, QueryParams

from logline.core.exceptions import ConfigurationError
from logline.core.settings import RequestLogSettings, get_request_log_settings
from logline.graphql.inspector import inspect_request
from logline.infra.logging.sampling import RequestSampler, uniform_draw
from logline.line.assembler import LineAssembler
from logline.line.record import RequestFacts, ResponseFacts

if TYPE_CHECKING:
    from collections.abc import Callable

    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

INSPECTED_CONTENT_TYPES = ("application/json", "application/graphql")
LEGACY_OPTIONS = frozenset({"json", "include_datadog_fields"})
BODYLESS_STATUSES = frozenset({204, 304})


def resolve_settings(settings: RequestLogSettings | None = None, **options: Any) -> RequestLogSettings:
    """Validate request logging options.

    Args:
        settings: Base settings. When None, settings are loaded from the
            environment (REQUEST_LOG_*) via the cached loader.
        **options: Overrides applied on top of ``settings``.

    Returns:
        Validated, frozen settings.

    Raises:
        ConfigurationError: If any option is invalid or unknown.
    """
    unknown = sorted(set(options) - set(RequestLogSettings.model_fields) - LEGACY_OPTIONS)
    if unknown:
        raise ConfigurationError(
            detail=f"Unknown request logging options: {', '.join(unknown)}",
            extra={"unknown": unknown},
        )

    try:
        if settings is None:
            return RequestLogSettings(**options) if options else get_request_log_settings()
        if options:
            base = settings.model_dump(exclude_unset=True, exclude={"level_int"})
            return RequestLogSettings(**{**base, **options})
        return settings
    except ValidationError as exc:
        raise ConfigurationError.from_validation_error(exc) from exc


def request_facts(scope: Scope) -> RequestFacts:
    """Read the request facts used by the log line from the ASGI scope."""
    headers = Headers(scope=scope)
    client = scope.get("client")
    return RequestFacts(
        method=scope["method"],
        path=scope["path"],
        client_ip=client[0] if client else None,
        user_agent=headers.get("user-agent"),
        referer=headers.get("referer"),
        x_forwarded_for=headers.get("x-forwarded-for"),
        x_forwarded_proto=headers.get("x-forwarded-proto"),
        x_forwarded_port=headers.get("x-forwarded-port"),
        via=headers.get("via"),
        http_version=scope.get("http_version"),
    )


def request_params(scope: Scope, body: bytes | None) -> dict[str, Any]:
    """Merge query-string params with the decoded request body.

    A JSON object body is merged key by key; an ``application/graphql``
    body becomes the ``query`` param. Bodies that cannot be decoded are
    ignored.
    """
    params: dict[str, Any] = dict(QueryParams(scope.get("query_string", b"")))
    if not body:
        return params

    content_type = _media_type(Headers(scope=scope))
    try:
        if content_type == "application/graphql":
            params["query"] = body.decode("utf-8")
        elif content_type == "application/json":
            decoded = json.loads(body)
            if isinstance(decoded, dict):
                params.update(decoded)
    except (ValueError, RecursionError) as exc:
        logger.debug("Request body could not be decoded: %s", exc)

    return params


def _media_type(headers: Headers) -> str:
    return headers.get("content-type", "").split(";", 1)[0].strip().lower()


def is_chunked(status: int, headers: Headers) -> bool:
    """Return whether a response body is streamed without a declared length.

    1xx, 204 and 304 responses carry no body and are always Sent.
    """
    if status < 200 or status in BODYLESS_STATUSES:
        return False
    if "chunked" in headers.get("transfer-encoding", "").lower():
        return True
    return "content-length" not in headers


class RequestLoggingMiddleware:
    """Log one line per HTTP request.

    Pure ASGI middleware; the line is built and logged when the wrapped app
    sends ``http.response.start``, so the timing excludes body streaming.
    A response streaming a body without ``content-length`` is reported as
    Chunked.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware, format="json", ignored_paths=["/health"])

    Args:
        app: The ASGI application to wrap.
        settings: Validated settings; loaded from the environment when omitted.
        logger: Logger that receives the lines.
        draw: Random source for success sampling.
        **options: RequestLogSettings fields overriding ``settings``.

    Raises:
        ConfigurationError: If the options are invalid.
    """

    def __init__(
        self,
        app: ASGIApp,
        settings: RequestLogSettings | None = None,
        *,
        logger: logging.Logger | None = None,
        draw: Callable[[], float] = uniform_draw,
        **options: Any,
    ) -> None:
        self.app = app
        self.settings = resolve_settings(settings, **options)
        self.logger = logger or logging.getLogger(__name__)
        self.sampler = RequestSampler.from_settings(self.settings, draw=draw)
        self.assembler = LineAssembler(self.settings)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_ns = time.perf_counter_ns()

        if not self.logger.isEnabledFor(self.settings.level_int):
            await self.app(scope, receive, send)
            return

        body, receive = await self._buffer_body(scope, receive)
        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start" and not response_started:
                response_started = True
                self._log_request(scope, body, start_ns, message)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if not response_started:
                logger.error(
                    "Unhandled exception before response: %s %s",
                    scope["method"],
                    scope["path"],
                    exc_info=True,
                )
            raise

    def _log_request(self, scope: Scope, body: bytes | None, start_ns: int, message: Message) -> None:
        """Build and emit the line; failures never reach the response."""
        try:
            duration_us = (time.perf_counter_ns() - start_ns) // 1000
            request = request_facts(scope)
            status = message["status"]

            if not self.sampler.should_log(status, request.path):
                return

            response_headers = Headers(raw=message.get("headers", []))
            response = ResponseFacts(
                status=status,
                chunked=is_chunked(status, response_headers),
            )
            graphql = inspect_request(request.method, request_params(scope, body), self.settings)
            line = self.assembler.assemble(request, graphql, duration_us, response)
            self.logger.log(self.settings.level_int, line)
        except Exception:
            logger.warning("Could not build request log line", exc_info=True)

    async def _buffer_body(self, scope: Scope, receive: Receive) -> tuple[bytes | None, Receive]:
        """Read an inspectable request body up front and replay it to the app.

        Only POST bodies with a JSON or GraphQL content type are read, and
        only up to ``max_body_bytes``. A larger body is replayed untouched
        and left uninspected.

        Returns:
            Tuple of (body or None, receive callable for the wrapped app).
        """
        if scope["method"] != "POST" or self.settings.max_body_bytes == 0:
            return None, receive

        headers = Headers(scope=scope)
        if _media_type(headers) not in INSPECTED_CONTENT_TYPES:
            return None, receive

        content_length = headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.settings.max_body_bytes:
            return None, receive

        messages: deque[Message] = deque()
        chunks: list[bytes] = []
        size = 0
        truncated = False
        while True:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                break
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.settings.max_body_bytes:
                truncated = True
                break
            chunks.append(chunk)
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if messages:
                return messages.popleft()
            return await receive()

        return (None if truncated else b"".join(chunks)), replay
