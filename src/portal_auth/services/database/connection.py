"""Supabase connection management."""

from functools import lru_cache

from supabase import AsyncClient, Client, acreate_client, create_client
from supabase.lib.client_options import AsyncClientOptions

from src.portal_auth.config import settings


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """
    Get Supabase admin client with service role key (singleton pattern).

    This client bypasses Row-Level Security (RLS) policies. The server
    resolver endpoints use it to find profile rows the caller cannot see yet
    and to back-fill their ``user_id`` column.

    ⚠️ WARNING: This client has full database access. Only use for trusted server-side operations.

    Returns:
        Configured Supabase client with service role key (bypasses RLS)

    Example:
        >>> client = get_supabase_admin_client()
        >>> response = client.table("employees").select("*").eq("email", email).execute()
    """
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


async def create_portal_client() -> AsyncClient:
    """
    Create an async Supabase client with the anon key.

    Each portal session owns one client: it signs in through ``client.auth``
    and its table queries then run under that user's RLS policies.

    Returns:
        Async Supabase client

    Example:
        >>> client = await create_portal_client()
        >>> provider = SupabaseIdentityProvider(client)
    """
    return await acreate_client(settings.supabase_url, settings.supabase_anon_key)


async def create_verification_client() -> AsyncClient:
    """
    Create a short-lived async Supabase client that keeps no session.

    Used to re-check a password without replacing the session held by a
    portal's own client: Supabase clears a client's stored session before
    every password grant, whatever the outcome.

    Returns:
        Async Supabase client with session persistence and refresh disabled
    """
    return await acreate_client(
        settings.supabase_url,
        settings.supabase_anon_key,
        options=AsyncClientOptions(persist_session=False, auto_refresh_token=False),
    )
