"""Tests for health and root API endpoints."""

import pytest
from httpx import AsyncClient


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        """Test health endpoint returns 200 OK."""
        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_service_info(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "kidneycalc"
        assert data["version"] == "0.1.0"

    @pytest.mark.asyncio
    async def test_health_returns_timestamp(self, client: AsyncClient) -> None:
        """Test health endpoint returns timestamp."""
        response = await client.get("/health")
        data = response.json()
        # Should be ISO format
        assert "T" in data["timestamp"]


class TestReadyEndpoint:
    """Test readiness endpoint."""

    @pytest.mark.asyncio
    async def test_ready_reports_formula_count(self, client: AsyncClient) -> None:
        response = await client.get("/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["formulas"] == 14
        assert data["by_category"]["Acid-Base"] == 5


class TestRootEndpoint:
    """Test root endpoint."""

    @pytest.mark.asyncio
    async def test_root_returns_service_info(self, client: AsyncClient) -> None:
        """Test root endpoint returns service info."""
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "KidneyCalc" in data["service"]
        assert data["docs"] == "/docs"
        assert data["formulas"] == "/api/v1/formulas"
