"""Database connection and query helpers."""

from src.portal_auth.services.database.connection import (
    create_portal_client,
    create_verification_client,
    get_supabase_admin_client,
)
from src.portal_auth.services.database.utils import SupabaseQueryBuilder, get_query_builder

__all__ = [
    "create_portal_client",
    "create_verification_client",
    "get_supabase_admin_client",
    "SupabaseQueryBuilder",
    "get_query_builder",
]
