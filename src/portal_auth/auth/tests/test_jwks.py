"""Tests for JWKS cache module."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from src.portal_auth.auth.jwks import JWKSCache

JWKS_URL = "https://test.supabase.co/auth/v1/.well-known/jwks.json"


@pytest.fixture
def mock_jwks_response():
    """Provide sample JWKS response."""
    return {
        "keys": [
            {"kid": "key-1", "kty": "RSA", "alg": "RS256", "use": "sig", "n": "abc", "e": "AQAB"},
            {"kid": "key-2", "kty": "EC", "crv": "P-256", "x": "xx", "y": "yy"},
            {"kty": "RSA", "n": "no-kid", "e": "AQAB"},
        ]
    }


@pytest.fixture
def cache(mock_jwks_response) -> JWKSCache:
    """JWKS cache whose HTTP client returns ``mock_jwks_response``."""
    cache = JWKSCache(JWKS_URL, cache_ttl=3600)
    mock_response = Mock()
    mock_response.json.return_value = mock_jwks_response
    mock_response.raise_for_status = Mock()
    cache._http_client.get = AsyncMock(return_value=mock_response)
    return cache


@pytest.fixture(autouse=True)
def mock_construct():
    """Skip real key parsing; the sample keys are not valid key material."""
    with patch("src.portal_auth.auth.jwks.jwk.construct") as construct:
        construct.side_effect = lambda key_data, algorithm: ("key", key_data["kid"], algorithm)
        yield construct


@pytest.mark.asyncio
class TestJWKSCache:
    """Tests for JWKSCache class."""

    async def test_initialization(self):
        cache = JWKSCache(JWKS_URL, cache_ttl=60)

        assert cache.jwks_url == JWKS_URL
        assert cache.cache_ttl == 60
        assert cache._keys == {}
        assert cache._fetched_at is None

    async def test_refresh_keys(self, cache):
        """Test keys are cached by kid with the algorithm of their key type."""
        await cache.refresh_keys()

        assert set(cache._keys) == {"key-1", "key-2"}
        assert cache._keys["key-1"] == ("key", "key-1", "RS256")
        assert cache._keys["key-2"] == ("key", "key-2", "ES256")
        assert cache._fetched_at is not None

    async def test_get_signing_key_fetches_once(self, cache):
        await cache.get_signing_key("key-1")
        await cache.get_signing_key("key-2")

        cache._http_client.get.assert_awaited_once_with(JWKS_URL)

    async def test_unknown_kid_forces_refresh(self, cache):
        await cache.refresh_keys()

        with pytest.raises(KeyError):
            await cache.get_signing_key("rotated-key")

        assert cache._http_client.get.await_count == 2

    async def test_stale_cache_refreshes(self, cache):
        await cache.refresh_keys()
        cache._fetched_at = datetime.now(timezone.utc) - timedelta(hours=2)

        await cache.get_signing_key("key-1")

        assert cache._http_client.get.await_count == 2

    async def test_refresh_keys_http_error(self):
        cache = JWKSCache(JWKS_URL)
        cache._http_client.get = AsyncMock(side_effect=httpx.HTTPError("Connection failed"))

        with pytest.raises(httpx.HTTPError):
            await cache.refresh_keys()

    async def test_close(self):
        cache = JWKSCache(JWKS_URL)
        cache._http_client.aclose = AsyncMock()

        await cache.close()

        cache._http_client.aclose.assert_awaited_once()
