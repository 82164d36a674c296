"""Shared fixtures for authentication tests."""

from typing import Any

import pytest


@pytest.fixture
def mock_user_id() -> str:
    """Provide a consistent test user ID."""
    return "123e4567-e89b-12d3-a456-426614174000"


@pytest.fixture
def valid_jwt_token() -> str:
    """Provide a mock valid JWT token for testing."""
    return "eyJhbGciOiJSUzI1NiIsImtpZCI6ImtleS0xIn0.mock.token"


@pytest.fixture
def mock_jwt_claims(mock_user_id: str) -> dict[str, Any]:
    """Provide mock JWT claims."""
    return {
        "sub": mock_user_id,
        "email": "Test@Example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "exp": 9999999999,
        "iat": 1234567890,
        "app_metadata": {"provider": "email"},
        "user_metadata": {"role": "vendor"},
    }
