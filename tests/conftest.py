"""Test fixtures for the API."""

from __future__ import annotations

import os

# Settings are read at import time; pin a plain-HTTP development profile.
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("CSRF_COOKIE_SECURE", "false")

import pytest  # noqa: E402
from fastapi import APIRouter, Depends, Query, Response  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from chatdock.errors import AppError  # noqa: E402
from chatdock.main import create_app  # noqa: E402
from chatdock.security import limiter, require_csrf  # noqa: E402
from chatdock.security.csrf import (  # noqa: E402
    CSRF_HEADER_NAME,
    CSRF_READABLE_COOKIE_NAME,
)

# Disable rate limiting in tests to prevent cross-test 429 flakes
limiter.enabled = False


class TeapotError(AppError):
    status_code = 418
    code = "TEAPOT"
    default_message = "I'm a teapot"


def _build_test_router() -> APIRouter:
    router = APIRouter()

    @router.get("/api/public")
    async def public():
        return {"message": "Public GET endpoint"}

    @router.head("/api/public")
    async def public_head():
        return Response(status_code=200)

    @router.options("/api/public")
    async def public_options():
        return {"allow": "GET, HEAD, OPTIONS"}

    @router.post("/api/protected")
    async def protected_create():
        return {"message": "Protected POST endpoint", "success": True}

    @router.put("/api/protected/{item_id}")
    async def protected_update(item_id: str):
        return {"message": "Protected PUT endpoint", "success": True}

    @router.patch("/api/protected/{item_id}")
    async def protected_patch(item_id: str):
        return {"message": "Protected PATCH endpoint", "success": True}

    @router.delete("/api/protected/{item_id}")
    async def protected_delete(item_id: str):
        return {"message": "Protected DELETE endpoint", "success": True}

    @router.post("/api/webhooks/test")
    async def webhook():
        return {"message": "Webhook processed", "success": True}

    @router.post("/api/chat/widget")
    async def widget_message():
        return {"message": "Widget message processed", "success": True}

    @router.post("/widget/session")
    async def unguarded():
        return {"success": True}

    @router.post("/forms/contact", dependencies=[Depends(require_csrf)])
    async def guarded_by_dependency():
        return {"success": True}

    @router.get("/api/teapot")
    async def teapot():
        raise TeapotError()

    @router.get("/api/items")
    async def items(limit: int = Query(...)):
        return {"limit": limit}

    return router


test_app = create_app()
test_app.include_router(_build_test_router())


@pytest.fixture
def app():
    return test_app


@pytest.fixture
def client(app):
    """Fresh client per test so cookie jars never leak between tests."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_client(client):
    """Client that has already received a CSRF token pair."""
    resp = client.get("/api/public")
    assert resp.status_code == 200
    return client


@pytest.fixture
def csrf_token(session_client) -> str:
    return session_client.cookies.get(CSRF_READABLE_COOKIE_NAME)


@pytest.fixture
def csrf_headers(csrf_token) -> dict[str, str]:
    return {CSRF_HEADER_NAME: csrf_token}


@pytest.fixture
def rate_limiting():
    """Turn the shared limiter back on with empty counters for one test."""
    limiter.reset()
    limiter.enabled = True
    yield limiter
    limiter.enabled = False
    limiter.reset()
