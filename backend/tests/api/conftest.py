"""API test fixtures - FastAPI app wired to the per-test engine.

Invariants:
    - get_engine dependency overridden with the test AccessEngine
    - app.state carries the engine and a fresh broadcaster (lifespan is not run)
"""

import pytest
from httpx import ASGITransport, AsyncClient

from nfcdesk.api.dependencies import get_engine
from nfcdesk.infrastructure.broadcaster import EventBroadcaster
from nfcdesk.main import app


@pytest.fixture
async def client(engine):
    """FastAPI test client bound to the test engine."""
    app.dependency_overrides[get_engine] = lambda: engine
    app.state.engine = engine
    app.state.broadcaster = EventBroadcaster()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    del app.state.engine
    del app.state.broadcaster


@pytest.fixture
async def bare_client():
    """Client against an app whose engine has not been created yet."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
