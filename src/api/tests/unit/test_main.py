"""Unit tests for main FastAPI application configuration."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from shared_kernel.errors import NotFound, VersionConflict


class TestApplicationWiring:
    """Tests for collection registration and error rendering."""

    def test_collections_are_registered_at_import(self):
        from infrastructure.dependencies import get_collection_registry
        from main import app  # noqa: F401

        registry = get_collection_registry()
        assert registry.is_scoped("buildings")
        assert not registry.is_scoped("tenants")
        assert not registry.is_scoped("pending_file_tags")

    def test_records_routes_are_mounted(self):
        from main import app

        paths = {getattr(route, "path", None) for route in app.routes}
        paths |= set(app.openapi()["paths"])
        assert "/records/{entity_type}" in paths
        assert "/records/{entity_type}/{entity_id}" in paths

    @pytest.mark.asyncio
    async def test_error_handler_renders_code_and_status(self):
        from main import tenancy_error_handler

        response = await tenancy_error_handler(
            MagicMock(), VersionConflict("building", "B1", 3, 4)
        )

        assert response.status_code == 409
        assert b'"error":"VERSION_CONFLICT"' in response.body
        assert b'"currentVersion":4' in response.body

    @pytest.mark.asyncio
    async def test_not_found_renders_404(self):
        from main import tenancy_error_handler

        response = await tenancy_error_handler(MagicMock(), NotFound("site", "S1"))

        assert response.status_code == 404


class TestLifespan:
    """Tests for startup and shutdown."""

    def test_health_and_reconciler_lifecycle(self):
        from main import app

        reconciler = MagicMock()
        reconciler.start = AsyncMock()
        reconciler.stop = AsyncMock()

        with (
            patch(
                "main.portfolio_dependencies.create_file_tag_reconciler",
                return_value=reconciler,
            ),
            patch("main.close_database_connections", new=AsyncMock()) as close,
        ):
            with TestClient(app) as client:
                response = client.get("/health")
                reconciler.start.assert_awaited_once()

        assert response.json() == {"status": "ok"}
        reconciler.stop.assert_awaited_once()
        close.assert_awaited_once()

    def test_reconciler_can_be_disabled(self, monkeypatch):
        from infrastructure.settings import get_file_storage_settings
        from main import app

        monkeypatch.setenv("TENANTCORE_FILES_RECONCILER_ENABLED", "false")
        get_file_storage_settings.cache_clear()

        try:
            with patch(
                "main.portfolio_dependencies.create_file_tag_reconciler"
            ) as create:
                with TestClient(app):
                    pass
            create.assert_not_called()
        finally:
            get_file_storage_settings.cache_clear()
