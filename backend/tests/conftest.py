"""
Storegate Backend - Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── test_settings:   Settings with the audit store installed
    ├── audit_logger:    AsyncMock standing in for AuditLogger
    ├── actor_resolver:  AsyncMock resolving every request to "customer-42"
    ├── make_context:    Factory for RequestContext over a synthetic ASGI scope
    ├── respond:         Sends a complete ASGI response through a context
    ├── build_app:       create_app() plus routes that fault, 400 and 404
    └── test_client:     HTTPX AsyncClient over build_app(test_settings)
"""

import os
from typing import Dict, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Override settings for testing BEFORE any storegate imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DATABASE_INSTALLED"] = "false"
os.environ["ENVIRONMENT"] = "production"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from fastapi.responses import JSONResponse  # noqa: E402
from starlette.datastructures import Headers  # noqa: E402

from storegate.config import Settings  # noqa: E402
from storegate.exceptions import NotFoundError  # noqa: E402
from storegate.main import create_app  # noqa: E402
from storegate.pipeline.context import RequestContext  # noqa: E402
from storegate.services.actor_resolver import ActorResolver  # noqa: E402
from storegate.services.audit_logger import AuditLogger  # noqa: E402

ACTOR_ID = "customer-42"


class RecordingSend:
    """ASGI `send` that keeps every message for assertions."""

    def __init__(self):
        self.messages = []

    async def __call__(self, message):
        self.messages.append(message)

    @property
    def starts(self):
        return [m for m in self.messages if m["type"] == "http.response.start"]

    @property
    def status(self) -> Optional[int]:
        return self.starts[-1]["status"] if self.starts else None

    @property
    def headers(self) -> Headers:
        return Headers(raw=self.starts[-1]["headers"]) if self.starts else Headers()

    @property
    def body(self) -> bytes:
        return b"".join(
            m.get("body", b"") for m in self.messages if m["type"] == "http.response.body"
        )


# ══════════════════════════════════════════════════════════════════════════
# Collaborators
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings():
    """Production-mode settings with the audit store installed."""
    return Settings(database_installed=True, environment="production")


@pytest.fixture
def audit_logger():
    """
    Provides a mock AuditLogger.

    What:    write() is an AsyncMock reporting success.
    Usage:
        record = audit_logger.write.await_args.args[0]
        assert record.message == "boom"
    """
    logger = AsyncMock(spec=AuditLogger)
    logger.write.return_value = True
    return logger


@pytest.fixture
def actor_resolver():
    resolver = AsyncMock(spec=ActorResolver)
    resolver.current_actor_id.return_value = ACTOR_ID
    return resolver


# ══════════════════════════════════════════════════════════════════════════
# Pipeline building blocks
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_context():
    """
    Provides a factory for RequestContext instances.

    Returns (context, send) where `send` is the RecordingSend the context's
    response flushes to.

    Usage:
        context, send = make_context("/unknown", query_string="a=1")
    """

    def _make(
        path: str = "/",
        *,
        method: str = "GET",
        query_string: str = "",
        root_path: str = "",
        headers: Optional[Dict[str, str]] = None,
    ):
        raw_headers = [(b"host", b"testserver")]
        for name, value in (headers or {}).items():
            raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "server": ("testserver", 80),
            "client": ("203.0.113.7", 51234),
            "root_path": root_path,
            "path": path,
            "query_string": query_string.encode("latin-1"),
            "headers": raw_headers,
        }

        async def receive():
            return {"type": "http.request", "body": b"", "more_body": False}

        send = RecordingSend()
        return RequestContext(scope, receive, send), send

    return _make


@pytest.fixture
def respond():
    """
    Provides a helper that plays a downstream app sending a full response.

    Usage:
        await respond(context, 404)                  # bodiless 404
        await respond(context, 200, b"hello")
    """

    async def _respond(
        context: RequestContext,
        status: int,
        body: bytes = b"",
        content_type: str = "text/html; charset=utf-8",
    ):
        headers = [
            (b"content-length", str(len(body)).encode("latin-1")),
            (b"content-type", content_type.encode("latin-1")),
        ]
        await context.response.send(
            {"type": "http.response.start", "status": status, "headers": headers}
        )
        await context.response.send({"type": "http.response.body", "body": body})

    return _respond


# ══════════════════════════════════════════════════════════════════════════
# Application
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def build_app(audit_logger, actor_resolver):
    """
    Provides a factory building the full application for given settings.

    Extra routes:
        GET /boom          → raises ValueError("kaboom")
        GET /bad-request   → 400 with a JSON body
        GET /items/{id}    → raises NotFoundError (JSON 404)
    """

    def _build(app_settings: Settings, **collaborators):
        collaborators.setdefault("audit_logger", audit_logger)
        collaborators.setdefault("actor_resolver", actor_resolver)
        app = create_app(app_settings, **collaborators)

        @app.get("/boom")
        async def boom():
            raise ValueError("kaboom")

        @app.get("/bad-request")
        async def bad_request():
            return JSONResponse({"error": "bad_request"}, status_code=400)

        @app.get("/items/{item_id}")
        async def get_item(item_id: str):
            raise NotFoundError(resource="Item", resource_id=item_id)

        return app

    return _build


def client_for(app) -> AsyncClient:
    """HTTPX AsyncClient routed straight into `app`."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
def make_client():
    return client_for


@pytest_asyncio.fixture
async def test_client(build_app, test_settings):
    """
    Provides an async HTTP test client for endpoint testing.

    What:    HTTPX AsyncClient configured to talk to the test application.
    How:     Uses ASGITransport to route requests directly to the app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health/live")
            assert response.status_code == 200
    """
    async with client_for(build_app(test_settings)) as client:
        yield client
