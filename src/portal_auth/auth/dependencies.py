"""FastAPI dependencies authenticating callers of the resolver endpoints."""

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from src.portal_auth.auth.token_verifier import IdentityTokenVerifier
from src.portal_auth.models import Identity
from src.portal_auth.portals import PortalKind
from src.portal_auth.roles import CanonicalRole, to_canonical
from src.portal_auth.services.analytics import PostHogService

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

# Global verifier instance (initialized in main.py startup)
_token_verifier: IdentityTokenVerifier | None = None

# Buyer and vendor sessions may not reach each other's endpoints
_FORBIDDEN_HINTS = {
    PortalKind.BUYER: CanonicalRole.VENDOR,
    PortalKind.VENDOR: CanonicalRole.BUYER,
}


def set_token_verifier(verifier: IdentityTokenVerifier | None) -> None:
    """Set the global token verifier (application startup)."""
    global _token_verifier
    _token_verifier = verifier


def get_token_verifier() -> IdentityTokenVerifier:
    """
    Get the global token verifier.

    Raises:
        RuntimeError: If the verifier was not initialized
    """
    if _token_verifier is None:
        raise RuntimeError(
            "Token verifier not initialized. "
            "Ensure application startup calls set_token_verifier()."
        )
    return _token_verifier


def _unauthorized(reason: str) -> HTTPException:
    PostHogService().capture(
        distinct_id="anonymous",
        event="authentication_failed",
        properties={"error": reason},
    )
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
    )


async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    """
    Authenticate the caller from its bearer token.

    The identity is also stored on ``request.state`` for per-user rate
    limiting.

    Returns:
        Verified identity

    Raises:
        HTTPException: 401 when the token is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("missing_token")

    try:
        identity = await get_token_verifier().verify(credentials.credentials)
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}", extra={"error_type": "invalid_token"})
        raise _unauthorized("jwt_verification_failed")

    request.state.identity = identity
    return identity


async def get_optional_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity | None:
    """Like ``get_current_identity`` but yields None instead of raising 401."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        identity = await get_token_verifier().verify(credentials.credentials)
    except JWTError as e:
        logger.info(f"Ignoring invalid bearer token: {e}")
        return None

    request.state.identity = identity
    return identity


def require_portal_identity(portal: PortalKind):
    """
    Build a dependency admitting identities that may use ``portal``.

    A buyer-hinted identity is refused on vendor endpoints and vice versa
    (403); everything else is left to the profile lookup.

    Example:
        >>> @router.get("/me")
        ... async def me(identity: Identity = Depends(require_portal_identity(PortalKind.VENDOR))):
        ...     ...
    """

    async def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        forbidden = _FORBIDDEN_HINTS.get(portal)
        if forbidden is not None and to_canonical(identity.role_hint) is forbidden:
            logger.info(
                f"Cross-portal request refused: {identity.role_hint} identity on {portal.value} endpoint",
                extra={"user_id": identity.id, "portal": portal.value},
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return identity

    return dependency
