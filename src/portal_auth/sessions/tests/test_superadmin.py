"""Tests for the SuperAdmin console session."""

from unittest.mock import AsyncMock, Mock

import pytest

from src.portal_auth.exceptions import AuthProviderError, UnauthorizedRoleError
from src.portal_auth.models import SessionState
from src.portal_auth.roles import CanonicalRole
from src.portal_auth.services.token_store import TokenStore
from src.portal_auth.sessions import SuperAdminContext, normalize_superadmin_row


@pytest.fixture
def api() -> Mock:
    """Mock console API client with a real token store."""
    api = Mock()
    api.token_store = TokenStore()
    api.login = AsyncMock()
    api.me = AsyncMock()
    api.change_password = AsyncMock()
    return api


@pytest.fixture
def context(api: Mock) -> SuperAdminContext:
    return SuperAdminContext(api, analytics=Mock())


class TestNormalizeSuperadminRow:
    """Tests for normalize_superadmin_row."""

    def test_missing_role_is_superadmin_when_assumed(self) -> None:
        profile = normalize_superadmin_row(
            {"id": "sa-1", "email": "root@example.com"}, assume_superadmin=True
        )

        assert profile.role == CanonicalRole.SUPERADMIN
        assert profile.name == "root"

    def test_missing_role_stays_missing_by_default(self) -> None:
        profile = normalize_superadmin_row({"id": "sa-1", "email": "root@example.com"})

        assert profile.role is None

    def test_existing_role_is_kept(self) -> None:
        profile = normalize_superadmin_row({"id": "sa-2", "role": "admin"})

        assert profile.role == CanonicalRole.ADMIN

    def test_empty_record(self) -> None:
        assert normalize_superadmin_row(None) is None
        assert normalize_superadmin_row({}) is None
        assert normalize_superadmin_row([]) is None


@pytest.mark.asyncio
class TestSuperAdminLogin:
    """Tests for SuperAdminContext.login."""

    async def test_success_stores_token(self, context, api):
        api.login.return_value = {
            "token": "sa-token",
            "superadmin": {"id": "sa-1", "email": "root@example.com", "name": "Root"},
        }

        profile = await context.login(" root@example.com ", "secret")

        assert profile.role == CanonicalRole.SUPERADMIN
        assert context.is_authenticated
        assert context.superadmin.name == "Root"
        assert api.token_store.get() == "sa-token"
        api.login.assert_awaited_once_with("root@example.com", "secret")

    async def test_non_superadmin_rejected(self, context, api):
        api.login.return_value = {"token": "t", "superadmin": {"id": "a-1", "role": "ADMIN"}}

        with pytest.raises(UnauthorizedRoleError):
            await context.login("admin@example.com", "secret")

        assert not context.is_authenticated
        assert api.token_store.get() is None

    async def test_missing_token_rejected(self, context, api):
        api.login.return_value = {"superadmin": {"id": "sa-1"}}

        with pytest.raises(AuthProviderError):
            await context.login("root@example.com", "secret")

    async def test_rejected_credentials(self, context, api):
        api.login.side_effect = AuthProviderError("401")

        with pytest.raises(AuthProviderError) as exc_info:
            await context.login("root@example.com", "bad")

        assert exc_info.value.user_message == "Invalid credentials"
        assert context.snapshot.state is SessionState.UNAUTHENTICATED


@pytest.mark.asyncio
class TestSuperAdminMount:
    """Tests for SuperAdminContext.mount."""

    async def test_without_token(self, context, api):
        snapshot = await context.mount()

        assert snapshot.state is SessionState.UNAUTHENTICATED
        api.me.assert_not_called()

    async def test_valid_token(self, context, api):
        api.token_store.set("sa-token")
        api.me.return_value = {"superadmin": {"id": "sa-1", "role": "superuser"}}

        snapshot = await context.mount()

        assert snapshot.is_authenticated
        assert snapshot.role == CanonicalRole.SUPERADMIN

    async def test_stale_token_is_cleared(self, context, api):
        """Test a token the API rejects is dropped."""
        api.token_store.set("expired")
        api.me.side_effect = AuthProviderError("401")

        snapshot = await context.mount()

        assert snapshot.state is SessionState.UNAUTHENTICATED
        assert api.token_store.get() is None

    async def test_token_for_record_without_role_is_cleared(self, context, api):
        """Test /me must name the role; only the login response is trusted without one."""
        api.token_store.set("sa-token")
        api.me.return_value = {"superadmin": {"id": "sa-1", "email": "root@example.com"}}

        snapshot = await context.mount()

        assert snapshot.state is SessionState.UNAUTHENTICATED
        assert api.token_store.get() is None

    async def test_token_of_non_superadmin_is_cleared(self, context, api):
        api.token_store.set("t")
        api.me.return_value = {"superadmin": {"id": "a-1", "role": "HR"}}

        await context.mount()

        assert not context.is_authenticated
        assert api.token_store.get() is None


@pytest.mark.asyncio
class TestSuperAdminSession:
    """Tests for logout and change_password."""

    async def test_logout(self, context, api):
        api.login.return_value = {"token": "t", "superadmin": {"id": "sa-1"}}
        await context.login("root@example.com", "secret")

        context.logout()

        assert not context.is_authenticated
        assert api.token_store.get() is None

    async def test_change_password(self, context, api):
        api.login.return_value = {"token": "t", "superadmin": {"id": "sa-1"}}
        await context.login("root@example.com", "secret")

        assert await context.change_password("secret", "new-secret") is True
        api.change_password.assert_awaited_once_with("secret", "new-secret")

    async def test_change_password_refused(self, context, api):
        api.login.return_value = {"token": "t", "superadmin": {"id": "sa-1"}}
        await context.login("root@example.com", "secret")
        api.change_password.side_effect = AuthProviderError("400")

        assert await context.change_password("wrong", "new-secret") is False

    async def test_change_password_requires_session(self, context):
        assert await context.change_password("a", "b") is False
