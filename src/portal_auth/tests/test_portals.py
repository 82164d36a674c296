"""Tests for portal strategies."""

from src.portal_auth.portals import BUYER_PORTAL, INTERNAL_PORTAL, PORTALS, VENDOR_PORTAL, PortalKind


def test_portal_registry() -> None:
    assert PORTALS[PortalKind.BUYER] is BUYER_PORTAL
    assert PORTALS[PortalKind.VENDOR].table == "vendors"
    assert PORTALS[PortalKind.INTERNAL].resolver_path == "/api/employee/me"


def test_eligibility() -> None:
    assert BUYER_PORTAL.is_eligible("buyer")
    assert not BUYER_PORTAL.is_eligible("VENDOR")
    assert INTERNAL_PORTAL.is_eligible("dataentry")
    assert INTERNAL_PORTAL.is_eligible("SUPERADMIN")
    assert not INTERNAL_PORTAL.is_eligible("owner")
    assert not INTERNAL_PORTAL.is_eligible(None)


def test_contradicts_hint() -> None:
    """Test only a present, ineligible hint rules a portal out."""
    assert VENDOR_PORTAL.contradicts_hint("BUYER")
    assert not VENDOR_PORTAL.contradicts_hint("vendor")
    assert not VENDOR_PORTAL.contradicts_hint(None)
    assert INTERNAL_PORTAL.contradicts_hint("VENDOR")
