"""SuperAdmin console session (bearer token, separate from the portal sessions)."""

from __future__ import annotations

import logging
from typing import Any

from src.portal_auth.exceptions import AuthProviderError, PortalAuthError, UnauthorizedRoleError
from src.portal_auth.models import Profile, SessionSnapshot, SessionState
from src.portal_auth.roles import CanonicalRole, is_superadmin_role, normalize_role
from src.portal_auth.services.analytics import PostHogService
from src.portal_auth.services.superadmin_api import SuperAdminApiClient

logger = logging.getLogger(__name__)


def normalize_superadmin_row(
    raw: Any, email: str | None = None, assume_superadmin: bool = False
) -> Profile | None:
    """
    Normalize the superadmin record returned by the console API.

    The login endpoint only ever authenticates superadmins, so with
    ``assume_superadmin`` a record that omits its role is taken as
    SUPERADMIN. Only the login response is trusted this way; a stored token
    checked against ``/me`` must come back with an explicit role.

    Args:
        raw: Record (or single-element list) from ``login``/``me``
        email: Login email used when the record has none
        assume_superadmin: Treat a missing role as SUPERADMIN

    Returns:
        Profile, or None for an empty record
    """
    row = raw[0] if isinstance(raw, list) and raw else raw
    if not isinstance(row, dict) or not row:
        return None

    profile = Profile.from_row(row, email=email)
    if profile.role is None and assume_superadmin:
        logger.warning(
            "SuperAdmin record has no role field, treating as SUPERADMIN",
            extra={"superadmin_id": profile.id},
        )
        profile = profile.model_copy(update={"role": CanonicalRole.SUPERADMIN})
    return profile


class SuperAdminContext:
    """
    Holds the SuperAdmin console session.

    Unlike the portal contexts this session is a bearer token kept in a
    ``TokenStore``; there are no provider events. ``mount()`` validates any
    stored token against ``/me`` and drops it when it no longer works.

    Example:
        >>> context = SuperAdminContext(SuperAdminApiClient())
        >>> await context.mount()
        >>> await context.login("root@example.com", "secret")
        >>> context.snapshot.role
        <CanonicalRole.SUPERADMIN: 'SUPERADMIN'>
    """

    def __init__(self, api: SuperAdminApiClient, analytics: PostHogService | None = None) -> None:
        self.api = api
        self.token_store = api.token_store
        self._analytics = analytics or PostHogService()
        self._snapshot = SessionSnapshot()
        self._token = 0

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def superadmin(self) -> Profile | None:
        return self._snapshot.user

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._snapshot.is_loading

    async def mount(self) -> SessionSnapshot:
        """Validate the stored token, clearing it if the API rejects it."""
        token = self._next_token()
        if not self.token_store.get():
            self._set_unauthenticated()
            return self._snapshot

        try:
            data = await self.api.me()
            profile = normalize_superadmin_row(data.get("superadmin"))
        except PortalAuthError as e:
            logger.warning(f"SuperAdmin session validation failed: {e}")
            profile = None

        if token != self._token:
            return self._snapshot

        if profile is not None and is_superadmin_role(profile.role):
            self._set_authenticated(profile)
        else:
            self.clear_superadmin_session()
        return self._snapshot

    async def login(self, email: str, password: str) -> Profile:
        """
        Sign in to the console.

        Raises:
            AuthProviderError: Credentials rejected (user message "Invalid credentials")
            UnauthorizedRoleError: The account is not a superadmin
        """
        token = self._next_token()
        safe_email = str(email or "").strip()
        logger.info(f"SuperAdmin login attempt for {safe_email}")

        try:
            data = await self.api.login(safe_email, password)
            profile = normalize_superadmin_row(
                data.get("superadmin"), safe_email, assume_superadmin=True
            )
            if profile is None or not data.get("token"):
                raise AuthProviderError("Login response carried no superadmin or token")
            if not is_superadmin_role(profile.role):
                raise UnauthorizedRoleError(f"Role {profile.role} is not SUPERADMIN")
        except PortalAuthError as e:
            logger.warning(
                f"SuperAdmin login failed for {safe_email}: {e}",
                extra={"error_type": "login_failed", "portal": "superadmin"},
            )
            self._analytics.capture(
                distinct_id="anonymous",
                event="login_failed",
                properties={"portal": "superadmin", "cause": type(e).__name__},
            )
            if token == self._token:
                self.clear_superadmin_session()
            raise

        if token != self._token:
            raise UnauthorizedRoleError("Login superseded by a newer session change")

        self.token_store.set(data["token"])
        self._set_authenticated(profile)
        self._analytics.capture(
            distinct_id=str(profile.id or safe_email),
            event="login_succeeded",
            properties={"portal": "superadmin"},
        )
        return profile

    def logout(self) -> None:
        """End the console session. Never raises."""
        self.clear_superadmin_session()
        logger.info("SuperAdmin session ended")

    async def change_password(self, current_password: str, new_password: str) -> bool:
        """
        Change the superadmin password.

        Returns:
            True on success, False when not signed in or the API refused
        """
        if not self.is_authenticated:
            return False
        try:
            await self.api.change_password(current_password, new_password)
        except PortalAuthError as e:
            logger.error(f"SuperAdmin password update failed: {e}")
            return False
        return True

    def clear_superadmin_session(self) -> None:
        """Drop the stored token and the local session."""
        self._next_token()
        self.token_store.clear()
        self._set_unauthenticated()

    def _next_token(self) -> int:
        self._token += 1
        return self._token

    def _set_authenticated(self, profile: Profile) -> None:
        self._snapshot = SessionSnapshot(
            state=SessionState.AUTHENTICATED,
            profile=profile,
            role=normalize_role(profile.role),
        )

    def _set_unauthenticated(self) -> None:
        self._snapshot = SessionSnapshot(state=SessionState.UNAUTHENTICATED)
