"""Shared fixtures for session context tests."""

from unittest.mock import AsyncMock, Mock

import pytest

from src.portal_auth.exceptions import AuthProviderError, NetworkError
from src.portal_auth.models import Identity, Profile, ProviderSession
from src.portal_auth.portals import INTERNAL_PORTAL
from src.portal_auth.sessions import SessionContext


class FakeIdentityProvider:
    """
    In-memory identity provider emitting auth events like Supabase does.

    Attributes:
        accounts: email -> (password, identity)
        session: Currently stored session
        sign_out_calls: Number of sign-out calls
        fail_sign_out: Make sign_out raise
    """

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, Identity]] = {}
        self.session: ProviderSession | None = None
        self.callback = None
        self.subscription = Mock()
        self.sign_out_calls = 0
        self.fail_sign_out = False
        self.updated_passwords: list[str] = []
        self.verify_calls = 0

    def add_account(self, email: str, password: str, **identity_fields) -> Identity:
        identity = Identity(id=f"uid-{email}", email=email, **identity_fields)
        self.accounts[email] = (password, identity)
        return identity

    def emit(self, event: str, session: ProviderSession | None) -> None:
        if self.callback is not None:
            self.callback(event, session)

    def on_auth_state_change(self, callback):
        self.callback = callback
        return self.subscription

    def _check(self, email: str, password: str) -> Identity:
        account = self.accounts.get(email.strip().lower())
        if account is None or account[0] != password:
            raise AuthProviderError("Invalid login credentials")
        return account[1]

    async def sign_in_with_password(self, email: str, password: str) -> ProviderSession:
        # Supabase drops the stored session, without an event, before the grant
        self.session = None
        identity = self._check(email, password)
        self.session = ProviderSession(access_token=f"token-{email}", identity=identity)
        self.emit("SIGNED_IN", self.session)
        return self.session

    async def verify_password(self, email: str, password: str) -> None:
        self.verify_calls += 1
        self._check(email, password)

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.fail_sign_out:
            raise NetworkError("provider unreachable")
        had_session = self.session is not None
        self.session = None
        if had_session:
            self.emit("SIGNED_OUT", None)

    async def get_session(self) -> ProviderSession | None:
        return self.session

    async def get_access_token(self) -> str | None:
        return self.session.access_token if self.session else None

    async def update_user(self, password: str) -> None:
        self.updated_passwords.append(password)


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def hr_profile() -> Profile:
    return Profile.from_row({"id": "e-1", "email": "hr@example.com", "name": "Hema", "role": "hr"})


@pytest.fixture
def resolver(hr_profile: Profile) -> Mock:
    """Resolver returning ``hr_profile`` for every identity."""
    resolver = Mock()
    resolver.resolve = AsyncMock(return_value=hr_profile)
    return resolver


@pytest.fixture
def analytics() -> Mock:
    return Mock()


@pytest.fixture
def context(provider, resolver, analytics) -> SessionContext:
    """Internal portal context over the fake provider."""
    return SessionContext(INTERNAL_PORTAL, provider, resolver, analytics=analytics)
