"""Application-root wiring: one explicit session context per portal."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from src.portal_auth.portals import (
    BUYER_PORTAL,
    INTERNAL_PORTAL,
    VENDOR_PORTAL,
    PortalKind,
    PortalSpec,
)
from src.portal_auth.provider import SupabaseIdentityProvider
from src.portal_auth.resolver import ProfileResolver
from src.portal_auth.services.analytics import PostHogService
from src.portal_auth.services.database import create_portal_client
from src.portal_auth.services.portal_api import PortalApiClient
from src.portal_auth.services.superadmin_api import SuperAdminApiClient
from src.portal_auth.sessions.context import SessionContext
from src.portal_auth.sessions.superadmin import SuperAdminContext

logger = logging.getLogger(__name__)


async def build_portal_context(
    portal: PortalSpec, analytics: PostHogService | None = None
) -> SessionContext:
    """
    Build a session context backed by its own Supabase client.

    Each portal gets a separate client so buyer, vendor and internal
    sessions never share provider state.

    Args:
        portal: Portal strategy
        analytics: Shared analytics service

    Returns:
        Unmounted session context
    """
    client = await create_portal_client()
    provider = SupabaseIdentityProvider(client)
    api = PortalApiClient(access_token_getter=provider.get_access_token)
    resolver = ProfileResolver.for_portal(portal, client, api)
    return SessionContext(portal, provider, resolver, analytics=analytics, api=api)


@dataclass
class SessionRegistry:
    """
    The session contexts of an application instance.

    Created once at the application root and passed explicitly to whatever
    needs a session, instead of being looked up from module globals.

    Example:
        >>> registry = await SessionRegistry.create()
        >>> await registry.mount_all()
        >>> decide(registry.internal.snapshot, ["ADMIN"], path="/admin/dashboard")
    """

    buyer: SessionContext
    vendor: SessionContext
    internal: SessionContext
    superadmin: SuperAdminContext

    @classmethod
    async def create(cls) -> "SessionRegistry":
        """Build every portal context with production clients."""
        analytics = PostHogService()
        buyer, vendor, internal = await asyncio.gather(
            build_portal_context(BUYER_PORTAL, analytics),
            build_portal_context(VENDOR_PORTAL, analytics),
            build_portal_context(INTERNAL_PORTAL, analytics),
        )
        superadmin = SuperAdminContext(SuperAdminApiClient(), analytics=analytics)
        return cls(buyer=buyer, vendor=vendor, internal=internal, superadmin=superadmin)

    def for_portal(self, kind: PortalKind | str) -> SessionContext | SuperAdminContext:
        """Get the context of a portal family."""
        return {
            PortalKind.BUYER: self.buyer,
            PortalKind.VENDOR: self.vendor,
            PortalKind.INTERNAL: self.internal,
            PortalKind.SUPERADMIN: self.superadmin,
        }[PortalKind(kind)]

    async def mount_all(self) -> None:
        """Boot every context concurrently."""
        await asyncio.gather(
            self.buyer.mount(),
            self.vendor.mount(),
            self.internal.mount(),
            self.superadmin.mount(),
        )
        logger.info("Portal sessions mounted")

    async def unmount_all(self) -> None:
        """Stop listening for provider events and close every HTTP client."""
        portals = (self.buyer, self.vendor, self.internal)
        await asyncio.gather(*(context.unmount() for context in portals))

        clients = [context.api for context in portals if context.api is not None]
        clients.append(self.superadmin.api)
        results = await asyncio.gather(
            *(client.close() for client in clients), return_exceptions=True
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Failed to close API client: {result}")
        logger.info("Portal sessions unmounted")
