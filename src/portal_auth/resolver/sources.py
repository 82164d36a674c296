"""Profile sources: RLS-scoped table lookups and the privileged server resolver."""

import logging
from typing import Literal

from supabase import AsyncClient

from src.portal_auth.models import Identity, Profile
from src.portal_auth.resolver.results import Found, LookupResult, NotFound
from src.portal_auth.services.database.utils import escape_like
from src.portal_auth.services.portal_api import PortalApiClient

logger = logging.getLogger(__name__)


class TableSource:
    """
    Looks a profile up in a table the signed-in user can read under RLS.

    Keyed either by the identity reference column (``user_id``) or by a
    case-insensitive email match for rows created before the reference was
    back-filled.

    Attributes:
        client: Async Supabase client carrying the user's session
        table: Profile table name
        key: "user_id" or "email"
        implied_role: Role implied by the table (buyers, vendors)
        name: Source label used in logs and results
    """

    def __init__(
        self,
        client: AsyncClient,
        table: str,
        key: Literal["user_id", "email"],
        implied_role: str | None = None,
    ):
        self.client = client
        self.table = table
        self.key = key
        self.implied_role = implied_role
        self.name = f"{table}.{key}"

    async def lookup(self, identity: Identity) -> LookupResult:
        if self.key == "user_id":
            if not identity.id:
                return NotFound(self.name, reason="identity has no id")
            query = self.client.table(self.table).select("*").eq("user_id", identity.id)
        else:
            email = str(identity.email or "").strip().lower()
            if not email:
                return NotFound(self.name, reason="identity has no email")
            query = self.client.table(self.table).select("*").ilike("email", escape_like(email))

        response = await query.limit(1).execute()
        if not response.data:
            return NotFound(self.name)

        return Found(
            Profile.from_row(response.data[0], email=identity.email, implied_role=self.implied_role),
            source=self.name,
        )


class ServerResolverSource:
    """
    Asks the portal API to resolve the profile with elevated privileges.

    The server bypasses RLS, matches by identity id then email, and writes
    the identity id back onto the row so later lookups succeed by id.

    Attributes:
        api: Portal API client
        path: Resolver endpoint, e.g. "/api/employee/me"
        response_key: Key holding the profile in the response body
        implied_role: Role implied by the portal (buyers, vendors)
    """

    def __init__(
        self,
        api: PortalApiClient,
        path: str,
        response_key: str,
        implied_role: str | None = None,
    ):
        self.api = api
        self.path = path
        self.response_key = response_key
        self.implied_role = implied_role
        self.name = f"server:{path}"

    async def lookup(self, identity: Identity) -> LookupResult:
        payload = await self.api.get_json(self.path)
        row = (payload or {}).get(self.response_key)
        if not row:
            return NotFound(self.name)

        logger.info(
            f"Profile resolved by server for identity {identity.id}",
            extra={"source": self.name, "user_id": identity.id},
        )
        return Found(
            Profile.from_row(row, email=identity.email, implied_role=self.implied_role),
            source=self.name,
        )
