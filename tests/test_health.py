"""Tests for health endpoint."""

import pytest
from httpx import ASGITransport, AsyncClient

from storefront.dependencies import build_services
from storefront.main import create_app
from storefront.settings import Settings
from tests.fakes import FakeListingStore


@pytest.fixture
async def client():
    """Create test client."""
    settings = Settings(redis_url="")
    app = create_app(settings=settings, services=build_services(FakeListingStore(), settings))
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_every_family_route_is_registered(client: AsyncClient):
    """Test the OpenAPI schema lists the routes of each family."""
    response = await client.get("/openapi.json")
    assert response.status_code == 200
    paths = response.json()["paths"]

    for label, plural in [
        ("iPhone", "iPhones"),
        ("Android", "Androids"),
        ("Accessory", "Accessories"),
        ("Product", "Products"),
    ]:
        assert f"/v1/add{label}" in paths
        assert f"/v1/getAll{plural}" in paths
        assert f"/v1/user/getAll{plural}" in paths
        assert f"/v1/getNumberOf{plural}" in paths
        assert f"/v1/purchase{label}/{{listing_id}}" in paths
