"""JWKS (JSON Web Key Set) fetching and caching for access token verification."""

import asyncio
import logging
from datetime import datetime, timezone

import httpx
from jose import jwk
from jose.backends.base import Key

logger = logging.getLogger(__name__)

# Key type -> signing algorithm used by the identity provider
KEY_ALGORITHMS = {"RSA": "RS256", "EC": "ES256"}


class JWKSCache:
    """
    In-memory cache of the identity provider's signing keys.

    Keys are fetched on first use, refreshed once the TTL has passed, and
    refreshed immediately when a token names a key id the cache has not
    seen (key rotation). Concurrent refreshes are collapsed into one fetch.

    Attributes:
        jwks_url: JWKS endpoint, e.g. "<supabase>/auth/v1/.well-known/jwks.json"
        cache_ttl: Seconds before cached keys are considered stale
        _keys: Cached keys by key id
        _fetched_at: When the keys were last fetched

    Example:
        >>> cache = JWKSCache(f"{settings.supabase_url}/auth/v1/.well-known/jwks.json")
        >>> key = await cache.get_signing_key(kid)
    """

    def __init__(
        self,
        jwks_url: str,
        cache_ttl: int = 3600,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self._keys: dict[str, Key] = {}
        self._fetched_at: datetime | None = None
        self._refresh_lock = asyncio.Lock()
        self._http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(10.0))

    def _is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        age = (datetime.now(timezone.utc) - self._fetched_at).total_seconds()
        return age >= self.cache_ttl

    async def get_signing_key(self, kid: str) -> Key:
        """
        Get the verification key for a key id.

        Args:
            kid: Key id from the token header

        Returns:
            Public key object

        Raises:
            KeyError: Key id unknown even after a refresh
            httpx.HTTPError: JWKS endpoint unreachable
        """
        if self._is_stale() or kid not in self._keys:
            await self.refresh_keys()

        key = self._keys.get(kid)
        if key is None:
            raise KeyError(f"Signing key '{kid}' not found in JWKS")
        return key

    async def refresh_keys(self) -> None:
        """Fetch the key set and replace the cache."""
        async with self._refresh_lock:
            response = await self._http_client.get(self.jwks_url)
            response.raise_for_status()

            keys: dict[str, Key] = {}
            for key_data in response.json().get("keys", []):
                kid = key_data.get("kid")
                if not kid:
                    logger.warning("Skipping JWKS entry without 'kid'")
                    continue
                algorithm = KEY_ALGORITHMS.get(key_data.get("kty"), key_data.get("alg", "RS256"))
                keys[kid] = jwk.construct(key_data, algorithm=algorithm)

            if not keys:
                logger.warning(
                    "JWKS response contains no keys; token verification will fail",
                    extra={"jwks_url": self.jwks_url},
                )

            self._keys = keys
            self._fetched_at = datetime.now(timezone.utc)
            logger.info(
                "JWKS cache refreshed",
                extra={"key_count": len(keys), "key_ids": list(keys)},
            )

    async def close(self) -> None:
        """Close the HTTP client. Called on application shutdown."""
        await self._http_client.aclose()
