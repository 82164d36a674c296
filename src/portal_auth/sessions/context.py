"""Per-portal session state driven by identity provider events."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from src.portal_auth.exceptions import (
    AuthProviderError,
    PortalAuthError,
    ProfileNotFoundError,
    UnauthorizedRoleError,
)
from src.portal_auth.models import (
    AuthEvent,
    Identity,
    Profile,
    ProviderSession,
    SessionSnapshot,
    SessionState,
)
from src.portal_auth.portals import PortalSpec
from src.portal_auth.provider import IdentityProvider, Subscription
from src.portal_auth.resolver import ProfileResolver
from src.portal_auth.roles import normalize_role
from src.portal_auth.services.analytics import PostHogService
from src.portal_auth.services.portal_api import PortalApiClient

logger = logging.getLogger(__name__)

RESOLVING_EVENTS = frozenset({AuthEvent.SIGNED_IN.value, AuthEvent.TOKEN_REFRESHED.value})


class SessionContext:
    """
    Holds the resolved identity, profile and role of one portal.

    State moves from BOOTING to AUTHENTICATED or UNAUTHENTICATED once on
    ``mount()`` and is re-driven by provider events afterwards: SIGNED_OUT
    clears the session at once, SIGNED_IN and TOKEN_REFRESHED re-run the
    profile resolver.

    Every boot, event, login and logout takes a new request token. A
    resolution result is only applied when its token is still the latest, so
    the session always reflects the last event processed rather than the
    first resolution to finish. Superseded resolutions are also cancelled.

    Contexts are independent of each other: buyer, vendor and internal
    portals each hold their own provider client and state.

    Attributes:
        portal: Portal strategy this context serves
        api: CSRF-aware API client bound to this portal's session, if any

    Example:
        >>> context = SessionContext(INTERNAL_PORTAL, provider, resolver)
        >>> await context.mount()
        >>> profile = await context.login("ops@example.com", "secret", expected_role="HR")
        >>> context.snapshot.is_authenticated
        True
    """

    def __init__(
        self,
        portal: PortalSpec,
        provider: IdentityProvider,
        resolver: ProfileResolver,
        analytics: PostHogService | None = None,
        api: PortalApiClient | None = None,
    ) -> None:
        self.portal = portal
        self.api = api
        self._provider = provider
        self._resolver = resolver
        self._analytics = analytics or PostHogService()
        self._snapshot = SessionSnapshot()
        self._token = 0
        self._pending: set[asyncio.Task] = set()
        self._subscription: Subscription | None = None
        self._unmounted = False

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def user(self) -> Profile | None:
        return self._snapshot.user

    @property
    def identity(self) -> Identity | None:
        return self._snapshot.identity

    @property
    def role(self) -> str | None:
        return self._snapshot.role

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._snapshot.is_loading

    @property
    def has_pending(self) -> bool:
        """True while a resolution task is still running."""
        return any(not task.done() for task in self._pending)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def mount(self) -> SessionSnapshot:
        """
        Subscribe to provider events and boot from the stored session.

        Returns:
            The snapshot once booting has settled
        """
        self._unmounted = False
        self._subscription = self._provider.on_auth_state_change(self.handle_event)

        self._spawn(self._boot(self._next_token()))
        await self.wait_idle()
        return self._snapshot

    async def unmount(self) -> None:
        """Stop listening and drop every in-flight resolution."""
        self._unmounted = True
        self._next_token()
        self._cancel_pending()

        if self._subscription is not None:
            try:
                self._subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Failed to unsubscribe {self.portal.kind.value} context: {e}")
            self._subscription = None

    async def wait_idle(self) -> None:
        """Wait until no resolution task is running."""
        while True:
            running = {task for task in self._pending if not task.done()}
            if not running:
                return
            await asyncio.wait(running)

    def handle_event(self, event: str, session: ProviderSession | None) -> None:
        """
        React to an identity provider event.

        Args:
            event: Event name ("SIGNED_IN", "SIGNED_OUT", "TOKEN_REFRESHED";
                anything else is ignored)
            session: Provider session attached to the event
        """
        if self._unmounted:
            return

        event = str(event or "").upper()
        if event == AuthEvent.SIGNED_OUT.value:
            self._next_token()
            self._cancel_pending()
            self._set_unauthenticated()
            return

        if event in RESOLVING_EVENTS and session is not None:
            token = self._next_token()
            self._cancel_pending()
            self._spawn(self._resolve_and_apply(session.identity, token))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def login(
        self, email: str, password: str, expected_role: str | None = None
    ) -> Profile:
        """
        Sign in and resolve the portal profile.

        Any earlier provider session is signed out first. When the credentials
        are rejected, no eligible profile exists, the role differs from
        ``expected_role``, or a newer auth event takes over while the profile
        is resolving, the provider session is signed out again before the
        error is raised, so a rejected login never leaves an identity signed
        in behind an unauthenticated portal.

        Args:
            email: Login email
            password: Password
            expected_role: Role the login form was for (e.g. "HR"); any
                eligible role is accepted when None

        Returns:
            The resolved profile

        Raises:
            AuthProviderError: Credentials rejected (user message "Invalid credentials")
            UnauthorizedRoleError: No eligible profile, role mismatch or a
                superseded login (user message "Unauthorized")
        """
        portal = self.portal.kind.value
        self._next_token()
        self._cancel_pending()
        await self._sign_out_quietly()

        try:
            session = await self._provider.sign_in_with_password(email, password)

            # Supersedes the resolution started by the SIGNED_IN event
            token = self._next_token()
            self._cancel_pending()

            try:
                profile = await self._resolver.resolve(session.identity, required=True)
            except ProfileNotFoundError as e:
                raise UnauthorizedRoleError(str(e)) from e

            if not self.portal.is_eligible(profile.role):
                raise UnauthorizedRoleError(f"Role {profile.role} is not eligible for {portal}")

            expected = normalize_role(expected_role)
            if expected and profile.role != expected:
                raise UnauthorizedRoleError(
                    f"Role {profile.role} does not match expected role {expected}"
                )

            if not self._is_current(token):
                logger.warning(
                    f"{portal} login superseded by a newer auth event",
                    extra={"portal": portal, "user_id": session.identity.id},
                )
                raise UnauthorizedRoleError("Login superseded by a newer auth event")
        except PortalAuthError as e:
            await self._roll_back_login(email, e)
            raise
        except Exception as e:
            await self._roll_back_login(email, e)
            raise AuthProviderError(f"Login failed unexpectedly: {e}") from e

        self._set_authenticated(session.identity, profile)
        logger.info(
            f"{portal} login succeeded for {session.identity.id} as {profile.role}",
            extra={"portal": portal, "user_id": session.identity.id, "role": profile.role},
        )
        self._analytics.capture(
            distinct_id=session.identity.id,
            event="login_succeeded",
            properties={"portal": portal, "role": profile.role},
        )
        return profile

    async def logout(self) -> None:
        """Sign out. Local state is always cleared and this never raises."""
        self._next_token()
        self._cancel_pending()
        try:
            await self._provider.sign_out()
        except Exception as e:
            logger.warning(
                f"Provider sign-out failed during {self.portal.kind.value} logout: {e}",
                extra={"error_type": "sign_out_failed", "portal": self.portal.kind.value},
            )
        finally:
            self._set_unauthenticated()

    async def change_password(self, current_password: str, new_password: str) -> bool:
        """
        Change the signed-in user's password.

        The current password is re-verified through
        ``IdentityProvider.verify_password``, which never replaces the live
        provider session. Session state is not touched.

        Args:
            current_password: Password the user signed in with
            new_password: Replacement password

        Returns:
            True on success, False otherwise
        """
        identity = self._snapshot.identity
        if not self.is_authenticated or identity is None or not identity.email:
            return False
        if not new_password:
            return False

        try:
            await self._provider.verify_password(identity.email, current_password)
            await self._provider.update_user(new_password)
        except PortalAuthError as e:
            logger.warning(
                f"Password change failed for {identity.id}: {e}",
                extra={"error_type": "password_change_failed", "portal": self.portal.kind.value},
            )
            return False

        logger.info(f"Password changed for {identity.id}")
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _next_token(self) -> int:
        self._token += 1
        return self._token

    def _is_current(self, token: int) -> bool:
        return not self._unmounted and token == self._token

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _cancel_pending(self) -> None:
        for task in list(self._pending):
            task.cancel()

    async def _boot(self, token: int) -> None:
        try:
            session = await self._provider.get_session()
        except Exception as e:
            logger.warning(
                f"Could not read provider session on boot: {e}",
                extra={"portal": self.portal.kind.value, "cause": type(e).__name__},
            )
            session = None

        if session is None:
            if self._is_current(token):
                self._set_unauthenticated()
            return

        await self._resolve_and_apply(session.identity, token)

    async def _resolve_and_apply(self, identity: Identity, token: int) -> None:
        try:
            profile = await self._resolver.resolve(identity, required=True)
        except PortalAuthError as e:
            logger.info(
                f"{self.portal.kind.value} session not resolved for {identity.id}: {e}",
                extra={"portal": self.portal.kind.value, "user_id": identity.id},
            )
            profile = None
        except Exception as e:
            logger.error(
                f"Unexpected error resolving {self.portal.kind.value} session for {identity.id}: {e}",
                extra={"portal": self.portal.kind.value, "user_id": identity.id},
            )
            profile = None

        if not self._is_current(token):
            logger.debug(f"Discarding stale resolution for {identity.id} (token {token})")
            return

        if profile is None:
            self._set_unauthenticated()
        else:
            self._set_authenticated(identity, profile)

    async def _roll_back_login(self, email: str, error: Exception) -> None:
        portal = self.portal.kind.value
        logger.warning(
            f"{portal} login rejected for {email}: {error}",
            extra={
                "error_type": "login_failed",
                "portal": portal,
                "cause": type(error).__name__,
            },
        )
        await self._sign_out_quietly()
        self._next_token()
        self._cancel_pending()
        self._set_unauthenticated()
        self._analytics.capture(
            distinct_id="anonymous",
            event="login_failed",
            properties={"portal": portal, "cause": type(error).__name__},
        )

    async def _sign_out_quietly(self) -> None:
        try:
            await self._provider.sign_out()
        except Exception as e:
            logger.warning(f"Provider sign-out failed: {e}", extra={"error_type": "sign_out_failed"})

    def _set_authenticated(self, identity: Identity, profile: Profile) -> None:
        self._snapshot = SessionSnapshot(
            state=SessionState.AUTHENTICATED,
            identity=identity,
            profile=profile,
            role=normalize_role(profile.role),
        )

    def _set_unauthenticated(self) -> None:
        self._snapshot = SessionSnapshot(state=SessionState.UNAUTHENTICATED)
