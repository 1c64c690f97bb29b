"""Pytest configuration and shared fixtures.

Organization:
    - Isolation Fixtures: settings caches and log context reset per test
    - Application Fixtures: FastAPI app factory with the middleware installed
    - Client Fixtures: HTTPX AsyncClient bound to an app
    - Log Fixtures: helpers to read request lines from caplog
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response, StreamingResponse
from httpx import ASGITransport, AsyncClient

from logline.app.middleware import configure_request_logging
from logline.core.settings import clear_all_caches
from logline.infra.logging.context import clear_log_context

REQUEST_LOGGER = "logline.app.middleware.request_logging"


# ============================================================================
# Isolation Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch):
    """Reset cached settings and log context around every test.

    REQUEST_LOG_* and LOG_* variables from the developer's shell would
    change defaults, so they are removed for the test.
    """
    import os

    for name in list(os.environ):
        if name.startswith(("REQUEST_LOG_", "LOG_")):
            monkeypatch.delenv(name)

    clear_all_caches()
    clear_log_context()
    yield
    clear_all_caches()
    clear_log_context()


# ============================================================================
# Application Fixtures
# ============================================================================


def build_app() -> FastAPI:
    """Create a FastAPI app exercising the response shapes the logger sees."""
    app = FastAPI()

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/unhealthy")
    async def unhealthy():
        return JSONResponse({"status": "down"}, status_code=500)

    @app.get("/api/users")
    async def users():
        return [{"id": 1}]

    @app.get("/empty", status_code=204)
    async def empty():
        return Response(status_code=204)

    @app.get("/cached")
    async def cached():
        return Response(status_code=304)

    @app.get("/moved")
    async def moved():
        return RedirectResponse("/api/users", status_code=302)

    @app.get("/stream")
    async def stream():
        async def chunks():
            yield b"first,"
            yield b"second"

        return StreamingResponse(chunks(), media_type="text/plain")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    @app.post("/graphql")
    async def graphql(payload: dict[str, Any]):
        return {"data": {"echo": payload.get("operationName")}}

    @app.post("/graphql/raw")
    async def graphql_raw():
        return PlainTextResponse("ok")

    return app


@pytest.fixture
def make_app() -> Callable[..., FastAPI]:
    """Factory fixture returning an app with request logging configured.

    Example:
        def test_json(make_app):
            app = make_app(format="json")
    """

    def _make(**options: Any) -> FastAPI:
        app = build_app()
        configure_request_logging(app, **options)
        return app

    return _make


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def client_for() -> Callable[[FastAPI], AsyncClient]:
    """Create an async HTTP client for an app.

    ASGI app exceptions are not re-raised so error responses can be asserted.
    """

    def _client(app: FastAPI, raise_app_exceptions: bool = False) -> AsyncClient:
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        return AsyncClient(transport=transport, base_url="http://test")

    return _client


@pytest.fixture
async def client(make_app, client_for) -> AsyncGenerator[AsyncClient]:
    """Client for an app with default request logging options."""
    async with client_for(make_app()) as ac:
        yield ac


# ============================================================================
# Log Fixtures
# ============================================================================


@pytest.fixture
def request_lines(caplog: pytest.LogCaptureFixture) -> Callable[[], list[Any]]:
    """Capture request lines and return them as logged (str or dict).

    Diagnostics from the middleware itself are %-formatted or carry
    exc_info, so they are skipped.
    """
    caplog.set_level(logging.DEBUG, logger="logline")

    def _lines() -> list[Any]:
        return [
            record.msg
            for record in caplog.records
            if record.name == REQUEST_LOGGER and not record.args and not record.exc_info
        ]

    return _lines
