"""
Tests for health check and root endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_root(async_client: AsyncClient) -> None:
    response = await async_client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["environment"] == "testing"
    assert data["health"] == "/api/v1/health"


@pytest.mark.asyncio
async def test_simple_health(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/health/simple")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_liveness(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/health/live")
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_readiness(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "ready"


@pytest.mark.asyncio
async def test_full_health_is_degraded_without_redis(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["components"]["database"]["status"] == "healthy"
    assert data["components"]["redis"]["status"] == "disabled"
    assert data["checks"]["permission_cache"] is False
