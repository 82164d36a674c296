"""Route guard decisions for portal pages."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from src.portal_auth.portals import (
    BUYER_PORTAL,
    INTERNAL_PORTAL,
    SUPERADMIN_LOGIN_PATH,
    VENDOR_PORTAL,
)
from src.portal_auth.roles import CanonicalRole, is_superadmin_role, role_home, to_canonical

UNAUTHORIZED_PATH = "/unauthorized"

_CROSS_PORTAL = {
    CanonicalRole.BUYER: CanonicalRole.VENDOR,
    CanonicalRole.VENDOR: CanonicalRole.BUYER,
}


class SessionView(Protocol):
    """What a guard reads from a session context snapshot."""

    @property
    def is_loading(self) -> bool: ...

    @property
    def is_authenticated(self) -> bool: ...

    @property
    def role(self) -> str | None: ...


class GuardOutcome(str, Enum):
    """What the guarded page should do."""

    LOADING = "loading"
    REDIRECT = "redirect"
    RENDER = "render"


@dataclass(frozen=True)
class GuardDecision:
    """
    Outcome of a guard check.

    Attributes:
        outcome: Render a loading state, redirect, or render the page
        location: Redirect target (REDIRECT only)
        from_path: Page the visitor asked for, kept on login redirects so the
            login page can send them back
    """

    outcome: GuardOutcome
    location: str | None = None
    from_path: str | None = None

    @classmethod
    def loading(cls) -> "GuardDecision":
        return cls(GuardOutcome.LOADING)

    @classmethod
    def render(cls) -> "GuardDecision":
        return cls(GuardOutcome.RENDER)

    @classmethod
    def redirect(cls, location: str, from_path: str | None = None) -> "GuardDecision":
        return cls(GuardOutcome.REDIRECT, location=location, from_path=from_path or None)


def _canonical_set(roles: Iterable[object]) -> set[CanonicalRole]:
    return {role for role in (to_canonical(r) for r in roles) if role is not None}


def _portal_login(portal_login: str, host: str, subdomain: str) -> str:
    # Portal subdomains serve their login at the root
    return "/login" if host.startswith(f"{subdomain}.") else portal_login


def login_path(
    path: str = "",
    allowed_roles: Iterable[object] = (),
    redirect_to: str | None = None,
    host: str = "",
) -> str:
    """
    Pick the login page for an unauthenticated visitor.

    Precedence: explicit ``redirect_to``, then the path prefix, then the
    guard's allowed roles, then the buyer login.

    Args:
        path: Path being visited
        allowed_roles: Roles the guard admits
        redirect_to: Explicit login page set by the route
        host: Request host, for subdomain-mounted portals

    Returns:
        Login path
    """
    if redirect_to:
        return redirect_to

    if path.startswith("/buyer"):
        return BUYER_PORTAL.login_path
    if path.startswith("/vendor"):
        return VENDOR_PORTAL.login_path
    if path.startswith(("/admin", "/employee", "/hr")):
        return INTERNAL_PORTAL.login_path
    if path.startswith("/finance-portal"):
        is_admin_host = host.startswith(("admin.", "management."))
        return "/login" if is_admin_host else INTERNAL_PORTAL.login_path

    allowed = _canonical_set(allowed_roles)
    if CanonicalRole.BUYER in allowed:
        return _portal_login(BUYER_PORTAL.login_path, host, "buyer")
    if CanonicalRole.VENDOR in allowed:
        return _portal_login(VENDOR_PORTAL.login_path, host, "vendor")
    if allowed and allowed <= INTERNAL_PORTAL.eligible_roles:
        return INTERNAL_PORTAL.login_path

    return BUYER_PORTAL.login_path


def decide(
    view: SessionView,
    allowed_roles: Iterable[object] = (),
    path: str = "",
    redirect_to: str | None = None,
    host: str = "",
) -> GuardDecision:
    """
    Decide whether a guarded page renders.

    Args:
        view: Session snapshot of the portal owning the page
        allowed_roles: Roles admitted (any authenticated role when empty)
        path: Path being visited
        redirect_to: Explicit login page for unauthenticated visitors
        host: Request host

    Returns:
        LOADING while the session boots; REDIRECT to a login page when not
        signed in, or when a buyer hits a vendor page (and vice versa);
        REDIRECT to the role's home or ``/unauthorized`` for other role
        mismatches; RENDER otherwise

    Example:
        >>> decide(vendor_context.snapshot, ["VENDOR"], path="/vendor/leads")
        GuardDecision(outcome=<GuardOutcome.RENDER: 'render'>, location=None, from_path=None)
    """
    allowed_list = list(allowed_roles)

    if view.is_loading:
        return GuardDecision.loading()

    if not view.is_authenticated:
        return GuardDecision.redirect(
            login_path(path, allowed_list, redirect_to, host), from_path=path
        )

    if not allowed_list:
        return GuardDecision.render()

    allowed = _canonical_set(allowed_list)
    role = to_canonical(view.role)
    if role in allowed:
        return GuardDecision.render()

    if role in _CROSS_PORTAL and _CROSS_PORTAL[role] in allowed:
        own_login = BUYER_PORTAL.login_path if role is CanonicalRole.BUYER else VENDOR_PORTAL.login_path
        return GuardDecision.redirect(own_login, from_path=path)

    home = role_home(role, path)
    if home and home != path:
        return GuardDecision.redirect(home)
    return GuardDecision.redirect(UNAUTHORIZED_PATH)


def decide_superadmin(view: SessionView) -> GuardDecision:
    """Guard for the SuperAdmin console."""
    if view.is_loading:
        return GuardDecision.loading()
    if not view.is_authenticated or not is_superadmin_role(view.role):
        return GuardDecision.redirect(SUPERADMIN_LOGIN_PATH)
    return GuardDecision.render()
