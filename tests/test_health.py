"""
Health endpoint tests.
"""

import pytest
from fastapi.testclient import TestClient

from evolua.api.app import app


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


def test_health_endpoint(client):
    """The /health endpoint is public and reports the service as healthy."""
    response = client.get("/health/")
    assert response.status_code == 200
    data = response.json()
    assert "data" in data
    assert data["data"]["status"] == "healthy"
    assert "timestamp" in data["data"]
    assert "version" in data["data"]
    assert data["data"]["service"] == "Evolua Patient Management"


def test_health_ready_endpoint(client):
    """In-memory mode is always ready."""
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert "data" in data
    assert data["data"]["ready"] is True


def test_root_endpoint(client):
    """Test that the root endpoint returns API information."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "version" in data
    assert data["status"] == "running"
