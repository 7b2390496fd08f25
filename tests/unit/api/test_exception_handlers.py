"""Unit tests for exception handlers."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from api.exception_handlers import setup_exception_handlers
from core.exceptions import LocationValidationError, StoreError, UserNotFoundError


def _create_test_app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


async def _get(app: FastAPI, path: str):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        return await c.get(path)


class TestExceptionHandlers:
    @pytest.mark.asyncio
    async def test_app_exception_returns_error_code_and_message(self) -> None:
        app = _create_test_app()

        @app.get("/raise-app")
        async def _() -> None:
            raise UserNotFoundError("some-id")

        response = await _get(app, "/raise-app")

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "USER_NOT_FOUND"
        assert "some-id" in body["message"]
        assert body["details"]["user_id"] == "some-id"

    @pytest.mark.asyncio
    async def test_invalid_location_is_a_client_error(self) -> None:
        app = _create_test_app()

        @app.get("/raise-location")
        async def _() -> None:
            raise LocationValidationError("street communities require: street")

        response = await _get(app, "/raise-location")

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_LOCATION"
        assert "retry-after" not in response.headers

    @pytest.mark.asyncio
    async def test_store_error_is_retryable(self) -> None:
        app = _create_test_app()

        @app.get("/raise-store")
        async def _() -> None:
            raise StoreError()

        response = await _get(app, "/raise-store")

        assert response.status_code == 503
        assert response.json()["error_code"] == "DATABASE_ERROR"
        assert response.headers["retry-after"] == "1"

    @pytest.mark.asyncio
    async def test_http_exception_returns_standard_format(self) -> None:
        from starlette.exceptions import HTTPException

        app = _create_test_app()

        @app.get("/raise-http")
        async def _() -> None:
            raise HTTPException(status_code=403, detail="Forbidden")

        response = await _get(app, "/raise-http")

        assert response.status_code == 403
        body = response.json()
        assert body["error_code"] == "HTTP_ERROR"
        assert body["message"] == "Forbidden"

    @pytest.mark.asyncio
    async def test_validation_error_returns_field_details(self) -> None:
        from pydantic import BaseModel, Field

        app = _create_test_app()

        class Body(BaseModel):
            city: str = Field(..., min_length=1)

        @app.post("/validate")
        async def _(body: Body) -> dict[str, bool]:
            return {"ok": True}

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.post("/validate", json={"city": ""})

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["details"][0]["field"] == "body.city"

    @pytest.mark.asyncio
    async def test_unhandled_exception_returns_500(self) -> None:
        import json
        from unittest.mock import MagicMock

        app = _create_test_app()

        mock_request = MagicMock()
        mock_request.state.request_id = "test-req-id"

        handler = app.exception_handlers.get(Exception)
        assert handler is not None, "Global exception handler not registered"

        response = await handler(mock_request, RuntimeError("Something went wrong"))  # type: ignore[misc]

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error_code"] == "INTERNAL_ERROR"
        assert body["details"]["request_id"] == "test-req-id"
