"""Identity provider adapter over Supabase Auth."""

import logging
from typing import Any, Awaitable, Callable, Protocol

from supabase import AsyncClient, AuthApiError, AuthError, AuthRetryableError

from src.portal_auth.exceptions import AuthProviderError, NetworkError
from src.portal_auth.models import ProviderSession
from src.portal_auth.services.database import create_verification_client

logger = logging.getLogger(__name__)

AuthStateCallback = Callable[[str, ProviderSession | None], None]
ClientFactory = Callable[[], Awaitable[AsyncClient]]


class Subscription(Protocol):
    """Handle returned by ``on_auth_state_change``."""

    def unsubscribe(self) -> None: ...


class IdentityProvider(Protocol):
    """Operations the session layer needs from the identity provider."""

    async def sign_in_with_password(self, email: str, password: str) -> ProviderSession: ...

    async def verify_password(self, email: str, password: str) -> None: ...

    async def sign_out(self) -> None: ...

    async def get_session(self) -> ProviderSession | None: ...

    async def get_access_token(self) -> str | None: ...

    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription: ...

    async def update_user(self, password: str) -> None: ...


def _event_name(event: Any) -> str:
    return str(getattr(event, "value", event) or "").upper()


async def _password_grant(client: AsyncClient, email: str, password: str) -> ProviderSession:
    normalized_email = str(email or "").strip().lower()
    try:
        response = await client.auth.sign_in_with_password(
            {"email": normalized_email, "password": password}
        )
    except AuthRetryableError as e:
        raise NetworkError(f"Identity provider unavailable: {e}") from e
    except AuthApiError as e:
        raise AuthProviderError(f"Credentials rejected: {e}") from e
    except AuthError as e:
        raise AuthProviderError(f"Sign-in failed: {e}") from e

    session = ProviderSession.from_provider_session(response.session)
    if session is None:
        raise AuthProviderError("Sign-in returned no session")
    return session


class SupabaseIdentityProvider:
    """
    Identity provider backed by ``supabase.AsyncClient.auth``.

    Provider errors are translated into the package's exception taxonomy:
    credential rejections become ``AuthProviderError`` and retryable or
    transport failures become ``NetworkError``.

    Attributes:
        client: Async Supabase client shared with the portal's table queries

    Example:
        >>> client = await create_portal_client()
        >>> provider = SupabaseIdentityProvider(client)
        >>> session = await provider.sign_in_with_password("ops@example.com", "secret")
    """

    def __init__(self, client: AsyncClient, verification_client_factory: ClientFactory | None = None):
        self.client = client
        self._verification_client_factory = verification_client_factory or create_verification_client

    async def sign_in_with_password(self, email: str, password: str) -> ProviderSession:
        """
        Authenticate with email and password.

        Args:
            email: Login email (trimmed and lower-cased here)
            password: Password

        Returns:
            The new provider session

        Raises:
            AuthProviderError: Credentials rejected
            NetworkError: Provider unreachable or retryable failure
        """
        return await _password_grant(self.client, email, password)

    async def verify_password(self, email: str, password: str) -> None:
        """
        Check a password without touching the portal's own session.

        The grant runs on a separate session-less client, because a password
        grant on ``self.client`` drops its stored session first even when the
        password turns out to be wrong. The short-lived session it creates is
        revoked locally afterwards.

        Raises:
            AuthProviderError: Password rejected
            NetworkError: Provider unreachable or retryable failure
        """
        verifier = await self._verification_client_factory()
        await _password_grant(verifier, email, password)
        try:
            await verifier.auth.sign_out({"scope": "local"})
        except AuthError as e:
            logger.warning(
                f"Could not revoke password verification session: {e}",
                extra={"error_type": "sign_out_failed"},
            )

    async def sign_out(self) -> None:
        """Sign out the current session."""
        try:
            await self.client.auth.sign_out()
        except AuthError as e:
            raise NetworkError(f"Sign-out failed: {e}") from e

    async def get_session(self) -> ProviderSession | None:
        """Get the currently stored provider session, if any."""
        try:
            session = await self.client.auth.get_session()
        except AuthError as e:
            raise NetworkError(f"Could not read provider session: {e}") from e
        return ProviderSession.from_provider_session(session)

    async def get_access_token(self) -> str | None:
        """Get the access token of the current session, if any."""
        session = await self.get_session()
        return session.access_token if session else None

    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription:
        """
        Subscribe to provider auth events.

        Args:
            callback: Called with the event name ("SIGNED_IN", ...) and the
                converted session

        Returns:
            Subscription handle with ``unsubscribe()``
        """

        def _forward(event: Any, session: Any) -> None:
            callback(_event_name(event), ProviderSession.from_provider_session(session))

        return self.client.auth.on_auth_state_change(_forward)

    async def update_user(self, password: str) -> None:
        """
        Set a new password on the signed-in user.

        Raises:
            AuthProviderError: Provider rejected the new password
            NetworkError: Provider unreachable
        """
        try:
            await self.client.auth.update_user({"password": password})
        except AuthRetryableError as e:
            raise NetworkError(f"Identity provider unavailable: {e}") from e
        except AuthError as e:
            raise AuthProviderError(f"Password update rejected: {e}") from e
