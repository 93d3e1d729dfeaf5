"""API test fixtures.

Builds on root conftest fixtures (github, make_proxy, make_facade). The ASGI
transport does not run the app lifespan, so services are supplied through
app.dependency_overrides instead of app.state.
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from devstats.api.deps import get_proxy, get_stats_facade
from devstats.main import app


@pytest.fixture
def proxy(make_proxy, github):
    return make_proxy(github)


@pytest.fixture
def facade(make_facade):
    return make_facade()


@pytest.fixture
async def api_client(proxy, facade):
    """HTTP client against the app with stubbed GitHub-backed services."""
    app.dependency_overrides[get_proxy] = lambda: proxy
    app.dependency_overrides[get_stats_facade] = lambda: facade

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
