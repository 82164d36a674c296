"""Rate limiting for the resolver endpoints."""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.portal_auth.config import settings
from src.portal_auth.models import Identity

logger = logging.getLogger(__name__)


def get_identity_or_ip(request: Request) -> str:
    """
    Rate limit key: the caller's identity id, or its IP address.

    Args:
        request: FastAPI request object

    Returns:
        "user:<id>" for authenticated requests, "ip:<address>" otherwise
    """
    identity: Identity | None = getattr(request.state, "identity", None)
    if identity and identity.id:
        return f"user:{identity.id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_identity_or_ip,
    default_limits=[],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


class RateLimitTiers:
    """
    Rate limit tiers.

    Profile resolution runs on every portal boot and token refresh, so the
    resolver tier is generous per user.
    """

    RESOLVER = ["120 per minute", "2000 per hour"]

    PUBLIC = ["20 per minute", "100 per hour"]


# These decorators require the endpoint to have a 'request: Request' parameter
resolver_rate_limit = limiter.limit(";".join(RateLimitTiers.RESOLVER))
public_rate_limit = limiter.limit(";".join(RateLimitTiers.PUBLIC))
