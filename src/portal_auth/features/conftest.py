"""Shared fixtures for resolver endpoint tests."""

from typing import Any
from unittest.mock import Mock

import pytest

from src.portal_auth.auth import get_current_identity, get_optional_identity
from src.portal_auth.features.common import get_profile_lookup
from src.portal_auth.main import app
from src.portal_auth.models import Identity


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer test-token"}


@pytest.fixture
def rows() -> dict[str, dict[str, Any]]:
    """Rows returned by the fake lookup, keyed by table."""
    return {}


@pytest.fixture
def lookup(rows) -> Mock:
    """Fake ServerProfileLookup installed as the endpoint dependency."""
    lookup = Mock()
    lookup.resolve.side_effect = lambda table, identity: rows.get(table)
    app.dependency_overrides[get_profile_lookup] = lambda: lookup
    return lookup


@pytest.fixture
def sign_in():
    """
    Authenticate requests as the given identity.

    Example:
        >>> sign_in(Identity(id="user-1", email="ops@example.com"))
    """

    def _sign_in(identity: Identity) -> Identity:
        app.dependency_overrides[get_current_identity] = lambda: identity
        app.dependency_overrides[get_optional_identity] = lambda: identity
        return identity

    return _sign_in
