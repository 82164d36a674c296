"""FastAPI application entry point for the privileged profile resolver API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.portal_auth.auth import IdentityTokenVerifier, JWKSCache, set_token_verifier
from src.portal_auth.config import settings
from src.portal_auth.features.buyer import router as buyer_router
from src.portal_auth.features.employee import router as employee_router
from src.portal_auth.features.identity import router as identity_router
from src.portal_auth.features.vendor import router as vendor_router
from src.portal_auth.services.rate_limiter import limiter

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

# Global JWKS cache instance for cleanup
_jwks_cache: JWKSCache | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    global _jwks_cache

    # Supabase JWKS endpoint is at /auth/v1/.well-known/jwks.json
    jwks_url = f"{settings.supabase_url}/auth/v1/.well-known/jwks.json"
    issuer = f"{settings.supabase_url}/auth/v1"
    _jwks_cache = JWKSCache(jwks_url=jwks_url, cache_ttl=settings.jwks_cache_ttl_seconds)

    # Keys are fetched lazily on the first verified request
    set_token_verifier(
        IdentityTokenVerifier(
            jwks_cache=_jwks_cache,
            issuer=issuer,
            audience=settings.jwt_audience,
            leeway=settings.jwt_leeway_seconds,
        )
    )
    logger.info(
        "Token verifier initialized",
        extra={"jwks_url": jwks_url, "cache_ttl": settings.jwks_cache_ttl_seconds, "issuer": issuer},
    )

    yield

    set_token_verifier(None)
    if _jwks_cache is not None:
        try:
            await _jwks_cache.close()
            logger.info("Token verifier cleanup completed")
        except Exception as e:
            logger.error(f"Error during token verifier cleanup: {e}", exc_info=True)
        _jwks_cache = None


app = FastAPI(
    title="Marketplace Portal Auth API",
    description="Profile resolution for the buyer, vendor and internal portals",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
logger.info(f"Origins : {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "X-CSRF-Token"],
)

app.include_router(employee_router, prefix=API_PREFIX)
app.include_router(buyer_router, prefix=API_PREFIX)
app.include_router(vendor_router, prefix=API_PREFIX)
app.include_router(identity_router, prefix=API_PREFIX)


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


@app.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint."""
    return HealthCheckResponse(status="healthy")
