"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from src.portal_auth.main import app
from src.portal_auth.services.rate_limiter import limiter


@pytest.fixture
def client() -> TestClient:
    """
    Provide FastAPI test client for API testing.

    Returns:
        TestClient instance for making API requests

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Start every test with empty rate limit counters."""
    limiter.reset()
    yield
    app.dependency_overrides.clear()
