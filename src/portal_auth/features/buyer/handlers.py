"""API handlers for the buyer profile resolver."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.portal_auth.auth import require_portal_identity
from src.portal_auth.features.buyer.models import BuyerProfileResponse
from src.portal_auth.features.common import get_profile_lookup, lookup_failed
from src.portal_auth.models import Identity
from src.portal_auth.portals import BUYER_PORTAL, PortalKind
from src.portal_auth.services.profiles import ServerProfileLookup
from src.portal_auth.services.rate_limiter import resolver_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["buyer"])


def derive_account_status(buyer: dict) -> str:
    """Upper-cased account status of a buyer row ("ACTIVE" when unset)."""
    if buyer.get("is_active") is False:
        return "SUSPENDED"
    status_value = buyer.get("status") or buyer.get("account_status") or "ACTIVE"
    return str(status_value).strip().upper()


@router.get("/buyer/profile", response_model=BuyerProfileResponse)
@resolver_rate_limit
async def get_buyer_profile(
    request: Request,
    identity: Identity = Depends(require_portal_identity(PortalKind.BUYER)),
    lookup: ServerProfileLookup = Depends(get_profile_lookup),
) -> BuyerProfileResponse:
    """
    Resolve the buyer record of the caller.

    Vendor sessions are refused (403). Rows matched by email get their
    user_id back-filled.

    Args:
        identity: Verified caller identity

    Returns:
        Buyer row and its derived account status

    Raises:
        HTTPException: 403 for vendor-hinted identities
        HTTPException: 404 if no buyer row matches
        HTTPException: 503 on transient upstream failures

    Example Response:
        {
            "success": true,
            "buyer": {"id": "b-9", "email": "buyer@example.com", "user_id": "..."},
            "account_status": "ACTIVE"
        }
    """
    try:
        buyer = lookup.resolve(BUYER_PORTAL.table, identity)
    except Exception as e:
        raise lookup_failed(e, "buyer") from e

    if not buyer:
        logger.info(f"Buyer profile not found for {identity.id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Buyer profile not found",
        )

    return BuyerProfileResponse(buyer=buyer, account_status=derive_account_status(buyer))
