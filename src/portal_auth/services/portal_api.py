"""HTTP client for the marketplace portal API (cookie session + CSRF + bearer)."""

import logging
from typing import Any, Awaitable, Callable
from urllib.parse import unquote

import httpx

from src.portal_auth.config import settings
from src.portal_auth.exceptions import NetworkError

logger = logging.getLogger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

AccessTokenGetter = Callable[[], Awaitable[str | None]]


class PortalApiClient:
    """
    Calls the portal API the way the browser front end does.

    Mutating requests carry the CSRF token mirrored from the CSRF cookie in
    the ``X-CSRF-Token`` header. Every request carries the identity
    provider's access token as a bearer token unless the caller set its own
    Authorization header; the server prefers the bearer over a possibly
    stale cross-portal cookie.

    Attributes:
        base_url: API origin, e.g. "https://api.example.com"
        _access_token_getter: Coroutine returning the current access token
        _http_client: Shared async HTTP client holding the cookie jar

    Example:
        >>> client = PortalApiClient(access_token_getter=provider.get_access_token)
        >>> payload = await client.get_json("/api/employee/me")
    """

    def __init__(
        self,
        base_url: str | None = None,
        access_token_getter: AccessTokenGetter | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._access_token_getter = access_token_getter
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds)
        )

    async def _build_headers(self, method: str, headers: dict[str, str] | None) -> dict[str, str]:
        merged = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **(headers or {}),
        }

        if method not in SAFE_METHODS and "X-CSRF-Token" not in merged:
            csrf_token = self._http_client.cookies.get(settings.csrf_cookie_name)
            if csrf_token:
                merged["X-CSRF-Token"] = unquote(csrf_token)

        if "Authorization" not in merged and self._access_token_getter is not None:
            try:
                access_token = await self._access_token_getter()
            except Exception as e:
                # Request still goes out with the cookie session
                logger.debug(f"Could not read access token for API call: {e}")
                access_token = None
            if access_token and access_token.strip():
                merged["Authorization"] = f"Bearer {access_token.strip()}"

        return merged

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request to the portal API.

        Args:
            method: HTTP method
            path: Path relative to ``base_url`` (absolute URLs are used as-is)
            json: Optional JSON body
            headers: Extra headers

        Returns:
            The raw response

        Raises:
            NetworkError: On timeouts and transport failures
        """
        method = method.upper()
        url = path if path.startswith("http") else f"{self.base_url}/{path.lstrip('/')}"
        try:
            return await self._http_client.request(
                method,
                url,
                json=json,
                headers=await self._build_headers(method, headers),
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

    async def get_json(self, path: str) -> dict[str, Any] | None:
        """
        GET a JSON document.

        Args:
            path: Path relative to ``base_url``

        Returns:
            Parsed JSON object, or None for 4xx responses and non-object bodies

        Raises:
            NetworkError: On transport failures and 5xx responses
        """
        response = await self.request("GET", path)

        if response.status_code >= 500:
            raise NetworkError(f"GET {path} returned {response.status_code}")
        if not response.is_success:
            logger.debug(f"GET {path} returned {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"GET {path} returned a non-JSON body")
            return None
        return payload if isinstance(payload, dict) else None

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()
