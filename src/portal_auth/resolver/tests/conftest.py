"""Shared fixtures for profile resolution tests."""

from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from src.portal_auth.models import Identity, Profile
from src.portal_auth.resolver import Found, NotFound


@pytest.fixture
def identity() -> Identity:
    """Signed-in identity without a role hint."""
    return Identity(id="user-1", email="ops@example.com", role="authenticated")


@pytest.fixture
def make_source():
    """
    Build a mock profile source.

    Example:
        >>> source = make_source("employees.user_id", {"id": "e-1", "role": "HR"})
        >>> failing = make_source("server", error=TimeoutError("slow"))
    """

    def _make(name: str, row: dict[str, Any] | None = None, error: Exception | None = None) -> Mock:
        source = Mock()
        source.name = name
        if error is not None:
            source.lookup = AsyncMock(side_effect=error)
        elif row is not None:
            source.lookup = AsyncMock(return_value=Found(Profile.from_row(row), source=name))
        else:
            source.lookup = AsyncMock(return_value=NotFound(name))
        return source

    return _make
