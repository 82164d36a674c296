"""API handlers for the internal (employee) profile resolver."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.portal_auth.auth import require_portal_identity
from src.portal_auth.features.common import get_profile_lookup, lookup_failed
from src.portal_auth.features.employee.models import EmployeeMeResponse
from src.portal_auth.models import Identity
from src.portal_auth.portals import INTERNAL_PORTAL, PortalKind
from src.portal_auth.roles import normalize_role
from src.portal_auth.services.profiles import ServerProfileLookup
from src.portal_auth.services.rate_limiter import resolver_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employee", tags=["employee"])


@router.get("/me", response_model=EmployeeMeResponse)
@resolver_rate_limit
async def get_employee_me(
    request: Request,
    identity: Identity = Depends(require_portal_identity(PortalKind.INTERNAL)),
    lookup: ServerProfileLookup = Depends(get_profile_lookup),
) -> EmployeeMeResponse:
    """
    Resolve the employee record of the caller.

    Matches the employees table by user_id, then by email, bypassing RLS,
    and back-fills user_id on rows matched by email. The role is normalized
    ("dataentry" → "DATA_ENTRY"); a row without a role reports "UNKNOWN".

    Args:
        identity: Verified caller identity

    Returns:
        The employee record

    Raises:
        HTTPException: 404 if no employee row matches
        HTTPException: 503 on transient upstream failures

    Example Response:
        {
            "success": true,
            "employee": {"id": "e-1", "email": "ops@example.com", "role": "HR", "user_id": "..."}
        }
    """
    try:
        employee = lookup.resolve(INTERNAL_PORTAL.table, identity)
    except Exception as e:
        raise lookup_failed(e, "employee") from e

    if not employee:
        logger.info(f"Employee profile not found for {identity.id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee profile not found",
        )

    role = normalize_role(employee.get("role") or "UNKNOWN")
    return EmployeeMeResponse(
        employee={
            **employee,
            "user_id": identity.id or employee.get("user_id"),
            "role": getattr(role, "value", role),
        }
    )
