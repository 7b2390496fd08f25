"""Unit tests for middleware."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware


def _create_app_with_middleware() -> FastAPI:
    """Create a minimal FastAPI app with the production middleware stack."""
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/test")
    async def _():
        return {"ok": True}

    @app.get("/api/v1/test")
    async def _api():
        return {"ok": True}

    return app


async def _get(path: str, **kwargs) -> object:
    app = _create_app_with_middleware()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        return await c.get(path, **kwargs)


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    @pytest.mark.asyncio
    async def test_adds_standard_headers(self):
        response = await _get("/test")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["referrer-policy"] == "strict-origin-when-cross-origin"

    @pytest.mark.asyncio
    async def test_api_responses_are_not_cached(self):
        response = await _get("/api/v1/test")

        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_non_api_responses_keep_default_caching(self):
        response = await _get("/test")

        assert "cache-control" not in response.headers


class TestRequestIDMiddleware:
    """Tests for RequestIDMiddleware."""

    @pytest.mark.asyncio
    async def test_generates_request_id_when_not_provided(self):
        response = await _get("/test")

        assert len(response.headers["x-request-id"]) == 36

    @pytest.mark.asyncio
    async def test_propagates_existing_request_id(self):
        response = await _get("/test", headers={"X-Request-ID": "custom-req-123"})

        assert response.headers["x-request-id"] == "custom-req-123"

    @pytest.mark.asyncio
    async def test_replaces_malformed_request_id(self):
        response = await _get("/test", headers={"X-Request-ID": "bad id with spaces"})

        assert response.headers["x-request-id"] != "bad id with spaces"
        assert len(response.headers["x-request-id"]) == 36
