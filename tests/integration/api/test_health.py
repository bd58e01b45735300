"""
Integration tests for health check endpoints.
"""

from unittest.mock import AsyncMock, Mock

import pytest


class TestHealthEndpoints:
    """Tests for health and probe endpoints."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_root(self, async_client):
        response = await async_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "running"
        assert data["worksheets"] == "/api/worksheets"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_check(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["storage"] == "connected"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_check_storage_disabled(self, app, async_client, mock_storage):
        mock_storage.is_initialized = False

        response = await async_client.get("/health")

        assert response.json()["storage"] == "disabled"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_check_storage_unreachable(self, async_client, mock_storage):
        mock_storage.health_check_async = AsyncMock(return_value=False)

        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json()["storage"] == "unreachable"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_check_database_down(self, app, async_client):
        app.state.db = Mock(test_connection=AsyncMock(return_value=False))

        response = await async_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_readiness(self, async_client):
        response = await async_client.get("/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_readiness_database_down(self, app, async_client):
        app.state.db = Mock(test_connection=AsyncMock(return_value=False))

        response = await async_client.get("/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_liveness(self, async_client):
        response = await async_client.get("/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True


class TestRequestContext:
    """Tests for the request id and timing headers."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_request_id_generated(self, async_client):
        response = await async_client.get("/live")

        assert len(response.headers["X-Request-ID"]) == 32
        assert float(response.headers["X-Process-Time"]) >= 0

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_request_id_echoed(self, async_client):
        response = await async_client.get("/live", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_error_envelope_carries_request_id(self, async_client):
        response = await async_client.get("/no-such-route", headers={"X-Request-ID": "trace-404"})

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["request_id"] == "trace-404"
        assert error["path"] == "/no-such-route"
