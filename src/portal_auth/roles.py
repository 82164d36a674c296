"""Canonical portal roles and normalization of free-form role strings."""

import re
from enum import Enum


class CanonicalRole(str, Enum):
    """Closed set of roles a resolved session can hold."""

    BUYER = "BUYER"
    VENDOR = "VENDOR"
    ADMIN = "ADMIN"
    HR = "HR"
    FINANCE = "FINANCE"
    DATA_ENTRY = "DATA_ENTRY"
    SUPPORT = "SUPPORT"
    SALES = "SALES"
    SUPERADMIN = "SUPERADMIN"

    def __str__(self) -> str:
        return self.value


INTERNAL_ROLES: frozenset[CanonicalRole] = frozenset(
    {
        CanonicalRole.ADMIN,
        CanonicalRole.HR,
        CanonicalRole.FINANCE,
        CanonicalRole.DATA_ENTRY,
        CanonicalRole.SUPPORT,
        CanonicalRole.SALES,
        CanonicalRole.SUPERADMIN,
    }
)

# Values the identity provider puts in the role claim on its own. They say
# nothing about the portal role of the account.
PROVIDER_RESERVED_ROLES = frozenset({"AUTHENTICATED", "ANON", "ANONYMOUS", "USER"})

# Keyed by the raw value with whitespace, underscores and hyphens removed
_ALIASES: dict[str, CanonicalRole] = {
    "FINACE": CanonicalRole.FINANCE,
    "SUPERUSER": CanonicalRole.SUPERADMIN,
    "GODMODE": CanonicalRole.SUPERADMIN,
}
_ALIASES.update({role.value.replace("_", ""): role for role in CanonicalRole})

_SEPARATORS = re.compile(r"[\s_-]")

ROLE_HOME: dict[CanonicalRole, str] = {
    CanonicalRole.ADMIN: "/admin/dashboard",
    CanonicalRole.FINANCE: "/finance-portal/dashboard",
    CanonicalRole.HR: "/hr/dashboard",
    CanonicalRole.DATA_ENTRY: "/employee/dataentry/dashboard",
    CanonicalRole.SUPPORT: "/employee/support/dashboard",
    CanonicalRole.SALES: "/employee/sales/dashboard",
}


def normalize_role(raw: object) -> str | None:
    """
    Map a free-form role string to its canonical spelling.

    The value is trimmed and upper-cased, then matched with its separators
    (whitespace, underscores, hyphens) removed so that casing, separators and
    known misspellings all collapse to the same role. Digits and other
    characters are kept, so "admin2" is not ADMIN. Unrecognized values pass through upper-cased so that an
    allow-list check rejects them later; they are never mapped to a default.

    Args:
        raw: Role value from storage, token metadata or an API response

    Returns:
        The ``CanonicalRole`` member, the upper-cased unknown value, or None
        for empty input

    Example:
        >>> normalize_role("Dataentry")
        <CanonicalRole.DATA_ENTRY: 'DATA_ENTRY'>
        >>> normalize_role(" superuser ")
        <CanonicalRole.SUPERADMIN: 'SUPERADMIN'>
        >>> normalize_role("owner")
        'OWNER'
    """
    if raw is None:
        return None
    if isinstance(raw, Enum):
        raw = raw.value

    value = str(raw).strip().upper()
    if not value:
        return None

    canonical = _ALIASES.get(_SEPARATORS.sub("", value))
    if canonical is not None:
        return canonical
    return value


def to_canonical(raw: object) -> CanonicalRole | None:
    """Strict variant of ``normalize_role`` that drops unknown roles."""
    normalized = normalize_role(raw)
    return normalized if isinstance(normalized, CanonicalRole) else None


def is_internal_role(raw: object) -> bool:
    """Check whether a role belongs to the internal back-office family."""
    return to_canonical(raw) in INTERNAL_ROLES


def is_superadmin_role(raw: object) -> bool:
    """Check whether a role grants access to the SuperAdmin console."""
    return to_canonical(raw) is CanonicalRole.SUPERADMIN


def role_home(role: object, path: str = "") -> str | None:
    """
    Get the dashboard home of an internal role.

    Finance has two homes: the standalone finance portal and the copy mounted
    under the admin back-office, picked by the path currently being visited.

    Args:
        role: Role value (normalized here)
        path: Path the user was trying to reach

    Returns:
        Home path, or None when the role has no dashboard
    """
    canonical = to_canonical(role)
    if canonical is CanonicalRole.FINANCE and path.startswith("/admin"):
        return "/admin/finance-portal/dashboard"
    return ROLE_HOME.get(canonical) if canonical else None
