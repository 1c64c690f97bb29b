"""Unit tests for RequestIDMiddleware."""
from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from logline.app.middleware.request_id import RequestIDMiddleware
from logline.infra.logging.context import get_log_context


class TestRequestIDMiddleware:
    """Test suite for RequestIDMiddleware."""

    @pytest.fixture
    def app(self) -> FastAPI:
        """Create a minimal FastAPI app with RequestIDMiddleware.

        Returns:
            FastAPI application with middleware.
        """
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)

        @app.get("/test")
        async def test_endpoint(request: Request):
            return {
                "state": request.state.request_id,
                "context": get_log_context().get("request_id"),
            }

        @app.get("/error")
        async def error_endpoint():
            raise ValueError("Test error")

        return app

    @pytest.fixture
    async def client(self, app: FastAPI) -> AsyncClient:
        """Create an async HTTP client.

        Args:
            app: FastAPI application fixture.

        Returns:
            Async HTTP client.
        """
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac

    async def test_generates_request_id_when_not_provided(self, client: AsyncClient):
        """Test that middleware generates UUID when X-Request-ID header not provided."""
        response = await client.get("/test")

        assert response.status_code == 200
        request_id = response.headers["x-request-id"]
        try:
            uuid.UUID(request_id)
        except ValueError:
            pytest.fail(f"Invalid UUID format: {request_id}")

    async def test_preserves_existing_request_id(self, client: AsyncClient):
        """Test that middleware preserves X-Request-ID from incoming request."""
        custom_id = str(uuid.uuid4())

        response = await client.get("/test", headers={"X-Request-ID": custom_id})

        assert response.headers["x-request-id"] == custom_id

    async def test_request_id_in_state_and_log_context(self, client: AsyncClient):
        """Test that handlers see the ID in request.state and the log context."""
        response = await client.get("/test", headers={"X-Request-ID": "abc-123"})

        assert response.json() == {"state": "abc-123", "context": "abc-123"}

    async def test_context_does_not_leak_after_request(self, client: AsyncClient):
        await client.get("/test", headers={"X-Request-ID": "abc-123"})

        assert "request_id" not in get_log_context()

    @patch("logline.app.middleware.request_id.set_log_context")
    async def test_sets_logging_context(self, mock_set_context: MagicMock, client: AsyncClient):
        """Test that middleware sets logging context with request_id."""
        await client.get("/test", headers={"X-Request-ID": "abc-123"})

        mock_set_context.assert_called_once_with(request_id="abc-123")

    @patch("logline.app.middleware.request_id.clear_log_context")
    async def test_clears_context_on_error(self, mock_clear_context: MagicMock, client: AsyncClient):
        """Test that middleware clears context even when handler raises exception."""
        with pytest.raises(ValueError):
            await client.get("/error")

        mock_clear_context.assert_called_once()

    async def test_upstream_state_wins(self):
        """Test that an ID already in scope state is reused."""

        async def mock_app(scope, receive, send):
            await send({"type": "http.response.start", "status": 204, "headers": []})

        middleware = RequestIDMiddleware(mock_app)
        scope = {"type": "http", "method": "GET", "path": "/", "headers": [], "state": {"request_id": "upstream"}}
        send = AsyncMock()

        await middleware(scope, AsyncMock(), send)

        message = send.call_args.args[0]
        assert (b"x-request-id", b"upstream") in message["headers"]

    async def test_handles_non_http_scope(self):
        """Test that middleware passes through non-HTTP scopes (websocket, lifespan)."""

        async def simple_app(scope, receive, send):
            await send({"type": "websocket.accept"})

        middleware = RequestIDMiddleware(simple_app)
        send = AsyncMock()

        await middleware({"type": "websocket", "path": "/ws"}, AsyncMock(), send)

        send.assert_called_once_with({"type": "websocket.accept"})
