"""Database utility functions for Supabase profile lookups."""

import logging
from typing import Any

from supabase import Client

from src.portal_auth.services.database.connection import get_supabase_admin_client

logger = logging.getLogger(__name__)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so an email matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseQueryBuilder:
    """Helper class for building and executing Supabase queries."""

    def __init__(self, client: Client | None = None) -> None:
        """
        Initialize query builder.

        Args:
            client: Supabase client instance (uses the admin client if None)
        """
        self.client = client or get_supabase_admin_client()

    def get_by_field(
        self, table: str, field: str, value: Any, columns: str = "*"
    ) -> dict[str, Any] | None:
        """
        Fetch a single record by field value.

        Args:
            table: Table name
            field: Field name to filter by
            value: Field value
            columns: Columns to select (default: "*")

        Returns:
            First matching record or None

        Example:
            >>> builder = SupabaseQueryBuilder()
            >>> employee = builder.get_by_field("employees", "user_id", user_id)
        """
        response = (
            self.client.table(table).select(columns).eq(field, value).limit(1).execute()
        )
        return response.data[0] if response.data else None

    def get_by_email(self, table: str, email: str, columns: str = "*") -> dict[str, Any] | None:
        """
        Fetch a single record by case-insensitive email match.

        Args:
            table: Table name
            email: Email address (trimmed and lower-cased here)
            columns: Columns to select (default: "*")

        Returns:
            First matching record or None

        Example:
            >>> builder = SupabaseQueryBuilder()
            >>> buyer = builder.get_by_email("buyers", "Owner@Example.com")
        """
        normalized = str(email or "").strip().lower()
        if not normalized:
            return None

        response = (
            self.client.table(table)
            .select(columns)
            .ilike("email", escape_like(normalized))
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def update_record(
        self, table: str, record_id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """
        Update a record by ID.

        Args:
            table: Table name
            record_id: Record ID
            data: Fields to update

        Returns:
            Updated record dictionary or None if not found

        Example:
            >>> builder = SupabaseQueryBuilder()
            >>> builder.update_record("employees", employee_id, {"user_id": user_id})
        """
        try:
            response = self.client.table(table).update(data).eq("id", str(record_id)).execute()
            return response.data[0] if response.data else None
        except Exception as e:
            logger.error(f"Failed to update record {record_id} in {table}: {e}")
            raise


def get_query_builder(client: Client | None = None) -> SupabaseQueryBuilder:
    """
    Get instance of SupabaseQueryBuilder.

    Args:
        client: Optional Supabase client (uses the admin client if None)

    Returns:
        SupabaseQueryBuilder instance

    Example:
        >>> db = get_query_builder()  # Uses admin client (bypasses RLS)
        >>> employee = db.get_by_email("employees", email)
    """
    return SupabaseQueryBuilder(client)
