"""API handler reporting who the caller is and which portal role they hold."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from src.portal_auth.auth import get_optional_identity
from src.portal_auth.features.common import get_profile_lookup, lookup_failed
from src.portal_auth.features.identity.models import AuthMeResponse
from src.portal_auth.models import Identity, Profile
from src.portal_auth.portals import BUYER_PORTAL, INTERNAL_PORTAL, VENDOR_PORTAL, PortalSpec
from src.portal_auth.services.profiles import ServerProfileLookup
from src.portal_auth.services.rate_limiter import public_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["identity"])

# Order in which portal tables are searched when the token carries no hint
RESOLUTION_ORDER: tuple[PortalSpec, ...] = (INTERNAL_PORTAL, VENDOR_PORTAL, BUYER_PORTAL)


def _candidate_portals(identity: Identity) -> tuple[PortalSpec, ...]:
    hint = identity.role_hint
    if not hint:
        return RESOLUTION_ORDER
    hinted = tuple(portal for portal in RESOLUTION_ORDER if portal.is_eligible(hint))
    return hinted or RESOLUTION_ORDER


def resolve_portal_profile(
    lookup: ServerProfileLookup, identity: Identity
) -> tuple[PortalSpec, Profile] | None:
    """
    Find the first portal in which ``identity`` holds an eligible profile.

    When the identity hints a role, only portals admitting that role are
    searched; otherwise employees, vendors and buyers are tried in turn.

    Returns:
        (portal, profile) or None
    """
    for portal in _candidate_portals(identity):
        row = lookup.resolve(portal.table, identity)
        if not row:
            continue
        profile = Profile.from_row(row, email=identity.email, implied_role=portal.implied_role)
        if portal.is_eligible(profile.role):
            return portal, profile
        logger.info(
            f"{portal.table} row for {identity.id} has ineligible role {profile.role}",
            extra={"user_id": identity.id, "table": portal.table},
        )
    return None


@router.get("/me", response_model=AuthMeResponse)
@public_rate_limit
async def get_auth_me(
    request: Request,
    identity: Identity | None = Depends(get_optional_identity),
    lookup: ServerProfileLookup = Depends(get_profile_lookup),
) -> AuthMeResponse:
    """
    Describe the caller: identity, portal role and profile.

    Anonymous callers and callers without any eligible profile get
    ``{"user": null}`` rather than an error.

    Example Response:
        {
            "user": {"id": "...", "email": "owner@example.com", "role": "VENDOR", "profile_id": "v-3"},
            "role": "VENDOR"
        }
    """
    if identity is None:
        return AuthMeResponse(user=None, role=None)

    try:
        resolved = resolve_portal_profile(lookup, identity)
    except Exception as e:
        raise lookup_failed(e, "user") from e

    if resolved is None:
        return AuthMeResponse(user=None, role=None)

    portal, profile = resolved
    role = getattr(profile.role, "value", profile.role)
    user: dict[str, Any] = {
        "id": identity.id,
        "email": identity.email,
        "name": profile.name,
        "role": role,
        "portal": portal.kind.value,
        "profile_id": profile.id,
        "status": profile.status,
        "avatar_url": profile.avatar_url or identity.user_metadata.get("avatar_url"),
    }
    return AuthMeResponse(user=user, role=role)
