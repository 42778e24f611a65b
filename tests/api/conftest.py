"""API test fixtures: TestClient over the real engines."""

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from core.config import EngineConfig


@pytest.fixture
def app():
    """App wired with a default EngineConfig (no env or .env lookups)."""
    return create_app(EngineConfig())


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def act(client):
    """POST an action and return the response."""

    def _act(domain: str, action: str, data: dict):
        return client.post("/api/actions", json={"domain": domain, "action": action, "data": data})

    return _act
