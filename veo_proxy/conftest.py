import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from veo_proxy.utils_tests.upstream_constants import TEST_TOKEN


@pytest.fixture(scope="session")
def proxy_app():
    from veo_proxy.server import app

    return app


@pytest.fixture
def test_client(proxy_app):
    with TestClient(proxy_app) as client:
        yield client


@pytest_asyncio.fixture
async def async_client(proxy_app):
    async with AsyncClient(
        transport=ASGITransport(app=proxy_app), base_url="http://proxy.test"
    ) as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TEST_TOKEN}"}
