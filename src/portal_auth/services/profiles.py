"""Privileged server-side profile lookup with identity reference back-fill."""

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError

from src.portal_auth.models import Identity
from src.portal_auth.services.analytics import PostHogService
from src.portal_auth.services.database import SupabaseQueryBuilder, get_query_builder

logger = logging.getLogger(__name__)


def is_transient_error(error: Exception) -> bool:
    """
    Check whether a database error is worth a retry by the caller.

    Transport failures and upstream 5xx/timeouts are transient; query and
    permission errors are not.
    """
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, APIError):
        code = str(error.code or "")
        return code.startswith("5") or code in {"57014", "PGRST000", "PGRST001", "PGRST002"}
    return False


class ServerProfileLookup:
    """
    Finds the profile row of an identity with RLS bypassed.

    Matches by ``user_id`` first, then by case-insensitive email. A row found
    by email whose ``user_id`` is missing or different is updated to point
    at the identity, so the next lookup (server or client side) matches by id.
    The write is keyed by row id and sets a fixed value, so repeating it is
    harmless.

    Example:
        >>> lookup = ServerProfileLookup()
        >>> employee = lookup.resolve("employees", identity)
    """

    def __init__(
        self,
        db: SupabaseQueryBuilder | None = None,
        analytics: PostHogService | None = None,
    ) -> None:
        self.db = db or get_query_builder()
        self.analytics = analytics or PostHogService()

    def resolve(self, table: str, identity: Identity) -> dict[str, Any] | None:
        """
        Find and sync the profile row of ``identity`` in ``table``.

        Args:
            table: Profile table ("buyers", "vendors", "employees")
            identity: Verified caller identity

        Returns:
            Row with ``user_id`` set to the identity id, or None
        """
        row = None
        if identity.id:
            row = self.db.get_by_field(table, "user_id", identity.id)
        if row is None and identity.email:
            row = self.db.get_by_email(table, identity.email)
        if row is None:
            return None

        if row.get("id") and identity.id and row.get("user_id") != identity.id:
            self._sync_user_id(table, row, identity)
        return row

    def _sync_user_id(self, table: str, row: dict[str, Any], identity: Identity) -> None:
        try:
            self.db.update_record(table, row["id"], {"user_id": identity.id})
        except Exception as e:
            logger.warning(
                f"Could not back-fill user_id on {table} row {row['id']}: {e}",
                extra={"error_type": "profile_sync_failed", "table": table},
            )
            return

        logger.info(
            f"Back-filled user_id on {table} row {row['id']}",
            extra={"table": table, "row_id": row["id"], "user_id": identity.id},
        )
        self.analytics.capture(
            distinct_id=identity.id,
            event="profile_synced",
            properties={"table": table},
        )
        row["user_id"] = identity.id
