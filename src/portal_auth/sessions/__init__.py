"""Session contexts for the buyer, vendor, internal and SuperAdmin portals."""

from src.portal_auth.sessions.context import SessionContext
from src.portal_auth.sessions.registry import SessionRegistry, build_portal_context
from src.portal_auth.sessions.superadmin import SuperAdminContext, normalize_superadmin_row

__all__ = [
    "SessionContext",
    "SessionRegistry",
    "build_portal_context",
    "SuperAdminContext",
    "normalize_superadmin_row",
]
