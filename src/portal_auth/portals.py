"""Per-portal resolution strategies (buyer, vendor, internal back-office)."""

from dataclasses import dataclass
from enum import Enum

from src.portal_auth.roles import INTERNAL_ROLES, CanonicalRole, to_canonical


class PortalKind(str, Enum):
    """Portal families served by the marketplace."""

    BUYER = "buyer"
    VENDOR = "vendor"
    INTERNAL = "internal"
    SUPERADMIN = "superadmin"


@dataclass(frozen=True)
class PortalSpec:
    """
    Everything that differs between the Supabase-backed portals.

    Attributes:
        kind: Portal family
        table: Profile table queried by identity id and email
        resolver_path: Privileged server endpoint used as the last source
        response_key: Key holding the profile in the server response
        eligible_roles: Roles allowed to hold a session in this portal
        implied_role: Role implied by membership of ``table`` (None when the
            table stores a role column)
        login_path: Where unauthenticated visitors are sent
    """

    kind: PortalKind
    table: str
    resolver_path: str
    response_key: str
    eligible_roles: frozenset[CanonicalRole]
    implied_role: CanonicalRole | None
    login_path: str

    def is_eligible(self, role: object) -> bool:
        """Check whether a role may hold a session in this portal."""
        return to_canonical(role) in self.eligible_roles

    def contradicts_hint(self, hint: object) -> bool:
        """
        Check whether an identity's role hint rules this portal out.

        A missing hint contradicts nothing; resolution then runs every source.
        """
        if not hint:
            return False
        return not self.is_eligible(hint)


BUYER_PORTAL = PortalSpec(
    kind=PortalKind.BUYER,
    table="buyers",
    resolver_path="/api/auth/buyer/profile",
    response_key="buyer",
    eligible_roles=frozenset({CanonicalRole.BUYER}),
    implied_role=CanonicalRole.BUYER,
    login_path="/buyer/login",
)

VENDOR_PORTAL = PortalSpec(
    kind=PortalKind.VENDOR,
    table="vendors",
    resolver_path="/api/vendors/me",
    response_key="vendor",
    eligible_roles=frozenset({CanonicalRole.VENDOR}),
    implied_role=CanonicalRole.VENDOR,
    login_path="/vendor/login",
)

INTERNAL_PORTAL = PortalSpec(
    kind=PortalKind.INTERNAL,
    table="employees",
    resolver_path="/api/employee/me",
    response_key="employee",
    eligible_roles=INTERNAL_ROLES,
    implied_role=None,
    login_path="/admin/login",
)

SUPERADMIN_LOGIN_PATH = "/admin/superadmin/login"

PORTALS: dict[PortalKind, PortalSpec] = {
    spec.kind: spec for spec in (BUYER_PORTAL, VENDOR_PORTAL, INTERNAL_PORTAL)
}
