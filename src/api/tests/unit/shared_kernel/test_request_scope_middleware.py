"""Unit tests for RequestContextMiddleware."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from shared_kernel.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from shared_kernel.middleware.observability import RequestScopeProbe
from shared_kernel.request_context import get_context, set_tenant


@pytest.fixture
def mock_request_scope_probe():
    """Mock RequestScopeProbe."""
    return MagicMock(spec=RequestScopeProbe)


@pytest.fixture
def test_client(mock_request_scope_probe) -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware, probe=mock_request_scope_probe)

    @app.get("/context")
    async def read_context():
        context = get_context()
        return {
            "request_id": context.request_id,
            "tenant_id": context.tenant_id,
            "actor_id": context.actor_id,
        }

    @app.get("/bind/{tenant_id}")
    async def bind(tenant_id: str):
        set_tenant(tenant_id)
        return {"tenant_id": get_context().tenant_id}

    return TestClient(app)


class TestRequestContextMiddleware:
    """Tests for per-request context binding."""

    def test_endpoint_sees_fresh_context(self, test_client):
        body = test_client.get("/context").json()

        assert body["request_id"]
        assert body["tenant_id"] is None
        assert body["actor_id"] is None

    def test_request_id_is_echoed(self, test_client):
        response = test_client.get("/context")

        assert response.headers[REQUEST_ID_HEADER] == response.json()["request_id"]

    def test_incoming_request_id_is_reused(self, test_client):
        response = test_client.get("/context", headers={"X-Request-ID": "req-42"})

        assert response.json()["request_id"] == "req-42"
        assert response.headers[REQUEST_ID_HEADER] == "req-42"

    def test_each_request_gets_its_own_context(self, test_client):
        first = test_client.get("/context").json()["request_id"]
        second = test_client.get("/context").json()["request_id"]

        assert first != second

    def test_tenant_does_not_leak_between_requests(self, test_client):
        test_client.get("/bind/01ARZ3NDEKTSV4RRFFQ69G5FAA")

        assert test_client.get("/context").json()["tenant_id"] is None

    def test_probe_sees_open_and_close(self, test_client, mock_request_scope_probe):
        response = test_client.get(
            "/bind/01ARZ3NDEKTSV4RRFFQ69G5FAA", headers={"X-Request-ID": "req-7"}
        )

        assert response.status_code == 200
        mock_request_scope_probe.scope_opened.assert_called_once_with(
            "req-7", "GET", "/bind/01ARZ3NDEKTSV4RRFFQ69G5FAA"
        )
        mock_request_scope_probe.scope_closed.assert_called_once_with(
            "req-7", "01ARZ3NDEKTSV4RRFFQ69G5FAA", 200
        )

    def test_context_is_unbound_outside_requests(self, test_client):
        test_client.get("/context")

        assert get_context() is None
