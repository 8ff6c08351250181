# tests/api_server/conftest.py
"""
Pytest configuration and fixtures for API server tests.

The application is built with create_app around the FakeExecutor-backed
orchestrator from the root conftest, so requests exercise the real routes,
authentication and exception handlers against a temporary tenants root.
"""

import pytest
from fastapi.testclient import TestClient

from q8agent.api_server.main import create_app

TOKEN = "test-token"


@pytest.fixture
def app(agent_config, orchestrator):
    return create_app(config=agent_config, orchestrator=orchestrator)


@pytest.fixture
def api_client(app):
    """Test client running the application lifespan."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def sample_provision_request():
    return {
        "id": "t-42",
        "subdomain": "acme",
        "compose_content": "services:\n  web:\n    image: nginx:alpine\n",
        "env_content": "APP_KEY=abc\n",
    }
