"""Bearer-token authentication for the resolver endpoints."""

from src.portal_auth.auth.dependencies import (
    get_current_identity,
    get_optional_identity,
    get_token_verifier,
    require_portal_identity,
    set_token_verifier,
)
from src.portal_auth.auth.jwks import JWKSCache
from src.portal_auth.auth.token_verifier import IdentityTokenVerifier

__all__ = [
    "get_current_identity",
    "get_optional_identity",
    "get_token_verifier",
    "require_portal_identity",
    "set_token_verifier",
    "JWKSCache",
    "IdentityTokenVerifier",
]
