"""Tests for the SuperAdmin console API client."""

import json

import httpx
import pytest

from src.portal_auth.exceptions import AuthProviderError, NetworkError
from src.portal_auth.services.superadmin_api import SuperAdminApiClient
from src.portal_auth.services.token_store import SUPERADMIN_TOKEN_SCOPE, TokenStore


def make_api(handler, token_store: TokenStore | None = None) -> SuperAdminApiClient:
    return SuperAdminApiClient(
        base_url="https://api.example.com/api/superadmin",
        token_store=token_store,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def test_token_store() -> None:
    store = TokenStore()

    assert store.scope == SUPERADMIN_TOKEN_SCOPE
    assert store.get() is None
    store.set("t")
    assert store.get() == "t"
    store.set("")
    assert store.get() is None


def test_empty_token_store_is_kept() -> None:
    store = TokenStore()

    assert make_api(lambda r: httpx.Response(200), token_store=store).token_store is store


@pytest.mark.asyncio
class TestSuperAdminApiClient:
    """Tests for SuperAdminApiClient."""

    async def test_login_posts_credentials(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"token": "t", "superadmin": {"id": "sa-1"}})

        data = await make_api(handler).login("root@example.com", "secret")

        assert data["token"] == "t"
        assert seen == {
            "method": "POST",
            "path": "/api/superadmin/login",
            "body": {"email": "root@example.com", "password": "secret"},
            "auth": None,
        }

    async def test_me_sends_stored_token(self):
        store = TokenStore()
        store.set("sa-token")
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"superadmin": {"id": "sa-1"}})

        await make_api(handler, token_store=store).me()

        assert seen["auth"] == "Bearer sa-token"

    async def test_change_password(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        await make_api(handler).change_password("old", "new")

        assert seen["method"] == "PUT"
        assert seen["body"] == {"current_password": "old", "new_password": "new"}

    async def test_rejection_raises_provider_error(self):
        api = make_api(lambda request: httpx.Response(401, json={"error": "Invalid credentials"}))

        with pytest.raises(AuthProviderError):
            await api.login("root@example.com", "bad")

    async def test_server_error_raises_network_error(self):
        api = make_api(lambda request: httpx.Response(502, text="bad gateway"))

        with pytest.raises(NetworkError):
            await api.me()
