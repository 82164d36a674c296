"""Helpers shared by the resolver endpoint handlers."""

import logging

from fastapi import HTTPException, status

from src.portal_auth.services.profiles import ServerProfileLookup, is_transient_error

logger = logging.getLogger(__name__)


def get_profile_lookup() -> ServerProfileLookup:
    """FastAPI dependency providing the privileged profile lookup."""
    return ServerProfileLookup()


def lookup_failed(error: Exception, label: str) -> HTTPException:
    """
    Map a profile lookup failure to an HTTP error.

    Args:
        error: Exception raised by the lookup
        label: Profile kind for messages ("employee", "buyer", ...)

    Returns:
        503 for transient upstream failures, 500 otherwise
    """
    if is_transient_error(error):
        logger.warning(
            f"{label} profile temporary upstream failure: {error}",
            extra={"error_type": "upstream_unavailable"},
        )
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label.capitalize()} profile service temporarily unavailable. Please retry.",
        )

    logger.error(f"{label} profile lookup failed: {error}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to resolve {label} profile",
    )
