"""Local verification of identity provider access tokens."""

import logging

from jose import JWTError, jwt

from src.portal_auth.auth.jwks import JWKSCache
from src.portal_auth.models import Identity

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256", "ES256"]


class IdentityTokenVerifier:
    """
    Verifies access tokens against the provider's JWKS and returns the identity.

    Validates signature, expiry, issuer and audience without calling the
    provider.

    Attributes:
        jwks_cache: Signing key cache
        issuer: Expected ``iss`` claim ("<supabase>/auth/v1")
        audience: Expected ``aud`` claim
        leeway: Clock skew tolerance in seconds

    Example:
        >>> verifier = IdentityTokenVerifier(cache, issuer=f"{settings.supabase_url}/auth/v1")
        >>> identity = await verifier.verify(token)
        >>> identity.role_hint
        'VENDOR'
    """

    def __init__(
        self,
        jwks_cache: JWKSCache,
        issuer: str,
        audience: str = "authenticated",
        leeway: int = 10,
    ):
        self.jwks_cache = jwks_cache
        self.issuer = issuer
        self.audience = audience
        self.leeway = leeway

    async def verify(self, token: str) -> Identity:
        """
        Verify a bearer token.

        Args:
            token: Encoded JWT (without the "Bearer " prefix)

        Returns:
            Identity built from the verified claims

        Raises:
            JWTError: Invalid signature, expired, wrong issuer/audience,
                unknown key, or missing ``sub``
        """
        try:
            kid = jwt.get_unverified_header(token).get("kid")
            if not kid:
                raise JWTError("Token header has no 'kid'")

            signing_key = await self.jwks_cache.get_signing_key(kid)
            claims = jwt.decode(
                token,
                signing_key,
                algorithms=ALGORITHMS,
                audience=self.audience,
                issuer=self.issuer,
                options={"require_exp": True, "require_sub": True, "leeway": self.leeway},
            )
        except JWTError as e:
            logger.warning(
                f"Token verification failed: {e}",
                extra={"error_type": "jwt_verification_failed"},
            )
            raise
        except KeyError as e:
            raise JWTError(f"Unknown signing key: {e}") from e

        if not claims.get("sub"):
            raise JWTError("Token has no subject")
        return Identity.from_claims(claims)
