"""Ordered multi-source profile resolution for a portal."""

import logging

from supabase import AsyncClient

from src.portal_auth.exceptions import ProfileNotFoundError
from src.portal_auth.models import Identity, Profile
from src.portal_auth.portals import PortalSpec
from src.portal_auth.resolver.results import (
    Found,
    NotFound,
    ProfileSource,
    best_effort,
    first_found,
)
from src.portal_auth.resolver.sources import ServerResolverSource, TableSource
from src.portal_auth.services.portal_api import PortalApiClient

logger = logging.getLogger(__name__)


class ProfileResolver:
    """
    Turns an identity into the portal profile it owns.

    Sources are tried in a fixed order and resolution stops at the first
    eligible match:

    1. profile table by identity id
    2. early exit when the identity's own role hint rules the portal out
    3. profile table by email
    4. server resolver (the only step that writes: it back-fills user_id)

    Every source is best-effort: a failing source counts as "found nothing".

    Attributes:
        portal: Portal strategy (table, eligible roles, resolver endpoint)
        by_id: Step 1 source
        by_email: Step 3 source
        server: Step 4 source

    Example:
        >>> resolver = ProfileResolver.for_portal(INTERNAL_PORTAL, client, api)
        >>> profile = await resolver.resolve(identity, required=True)
    """

    def __init__(
        self,
        portal: PortalSpec,
        by_id: ProfileSource,
        by_email: ProfileSource,
        server: ProfileSource,
    ):
        self.portal = portal
        self.by_id = best_effort(by_id)
        self.by_email = best_effort(by_email)
        self.server = best_effort(server)

    @classmethod
    def for_portal(
        cls, portal: PortalSpec, client: AsyncClient, api: PortalApiClient
    ) -> "ProfileResolver":
        """Build the standard id → email → server resolver for ``portal``."""
        return cls(
            portal,
            by_id=TableSource(client, portal.table, "user_id", portal.implied_role),
            by_email=TableSource(client, portal.table, "email", portal.implied_role),
            server=ServerResolverSource(
                api, portal.resolver_path, portal.response_key, portal.implied_role
            ),
        )

    def _accepts(self, profile: Profile) -> bool:
        return self.portal.is_eligible(profile.role)

    async def resolve(self, identity: Identity, required: bool = False) -> Profile | None:
        """
        Resolve the portal profile of ``identity``.

        Args:
            identity: Signed-in identity
            required: Raise instead of returning None when nothing matches

        Returns:
            Eligible profile, or None when not found and not required

        Raises:
            ProfileNotFoundError: Nothing eligible found and ``required`` is set
        """
        result = await first_found(identity, [self.by_id], self._accepts)
        if isinstance(result, Found):
            return result.profile

        hint = identity.role_hint
        if self.portal.contradicts_hint(hint):
            logger.info(
                f"Skipping fallback sources: role hint {hint} is outside the {self.portal.kind.value} portal",
                extra={"portal": self.portal.kind.value, "user_id": identity.id, "hint": hint},
            )
            return self._not_found(identity, required, NotFound("role_hint", reason=f"hint {hint}"))

        result = await first_found(identity, [self.by_email, self.server], self._accepts)
        if isinstance(result, Found):
            return result.profile

        return self._not_found(identity, required, result)

    def _not_found(self, identity: Identity, required: bool, result: NotFound) -> None:
        logger.info(
            f"No {self.portal.kind.value} profile for identity {identity.id}",
            extra={
                "portal": self.portal.kind.value,
                "user_id": identity.id,
                "last_source": result.source,
                "reason": result.reason,
            },
        )
        if required:
            raise ProfileNotFoundError(
                f"No {self.portal.kind.value} profile for identity {identity.id} "
                f"(last source {result.source}: {result.reason or 'no match'})"
            )
        return None
