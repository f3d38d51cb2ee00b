"""Integration tests for the error envelope at the HTTP boundary."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from conftest import FakeDatabase
from itemkit.api.main import create_app
from itemkit.core.config import Settings


@pytest.mark.integration
class TestErrorEnvelope:
    """Test failures that never reach a route handler."""

    async def test_unknown_route(self, client: AsyncClient) -> None:
        """Unknown paths are a 404 with a fixed message."""
        response = await client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Route not found"}

    async def test_method_not_allowed(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        """Known paths with the wrong method keep their status."""
        response = await client.put("/items/1", json={}, headers=auth_headers)

        assert response.status_code == 405
        assert response.json()["success"] is False


@pytest.mark.integration
class TestUnhandledErrors:
    """Test the unclassified error path."""

    @pytest.fixture
    def failing_app(self, app: FastAPI) -> FastAPI:
        """The application with a route that raises an unexpected error."""

        @app.get("/boom")
        async def boom() -> None:
            raise RuntimeError("disk on fire")

        return app

    async def test_development_shows_details(self, failing_app: FastAPI) -> None:
        """Outside production the message and type are returned."""
        transport = ASGITransport(app=failing_app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "disk on fire"
        assert body["details"]["type"] == "RuntimeError"

    async def test_production_hides_details(
        self, failing_app: FastAPI, test_settings: Settings
    ) -> None:
        """In production only a generic message is returned."""
        failing_app.state.settings = test_settings.model_copy(
            update={"environment": "production"}
        )
        transport = ASGITransport(app=failing_app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}

    async def test_debug_mode_keeps_envelope(self, test_settings: Settings) -> None:
        """Debug settings do not replace the envelope with a plain-text traceback."""
        settings = test_settings.model_copy(update={"debug": True})
        debug_app = create_app(settings, database=FakeDatabase())  # type: ignore[arg-type]

        @debug_app.get("/boom")
        async def boom() -> None:
            raise RuntimeError("disk on fire")

        transport = ASGITransport(app=debug_app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/boom")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "disk on fire"
