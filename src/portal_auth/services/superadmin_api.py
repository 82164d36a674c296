"""HTTP client for the SuperAdmin console API (bearer token sessions)."""

import logging
from typing import Any

import httpx

from src.portal_auth.config import settings
from src.portal_auth.exceptions import AuthProviderError, NetworkError
from src.portal_auth.services.token_store import TokenStore

logger = logging.getLogger(__name__)


class SuperAdminApiClient:
    """
    Client for ``/api/superadmin`` authentication endpoints.

    Attributes:
        base_url: SuperAdmin API base, e.g. "https://api.example.com/api/superadmin"
        token_store: Where the console bearer token is kept
        _http_client: Async HTTP client

    Example:
        >>> store = TokenStore()
        >>> api = SuperAdminApiClient(token_store=store)
        >>> data = await api.login("root@example.com", "secret")
        >>> store.set(data["token"])
        >>> me = await api.me()
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_store: TokenStore | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.superadmin_api_base).rstrip("/")
        self.token_store = token_store or TokenStore()
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds)
        )

    async def _request(self, method: str, path: str, json: Any = None) -> dict[str, Any]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        token = self.token_store.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = await self._http_client.request(method, url, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code >= 500:
            raise NetworkError(f"{method} {url} returned {response.status_code}")
        if not response.is_success:
            raise AuthProviderError(
                f"{method} {url} returned {response.status_code}: {payload.get('error', 'no detail')}"
            )
        return payload

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Authenticate a superadmin.

        Returns:
            ``{"token": str, "superadmin": dict}``

        Raises:
            AuthProviderError: Credentials rejected
            NetworkError: API unreachable
        """
        return await self._request("POST", "/login", {"email": email, "password": password})

    async def me(self) -> dict[str, Any]:
        """Get the superadmin behind the stored token (``{"superadmin": dict}``)."""
        return await self._request("GET", "/me")

    async def change_password(self, current_password: str, new_password: str) -> dict[str, Any]:
        """Change the superadmin password."""
        return await self._request(
            "PUT",
            "/password",
            {"current_password": current_password, "new_password": new_password},
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()
