"""Profile resolution: identity → portal profile."""

from src.portal_auth.resolver.resolver import ProfileResolver
from src.portal_auth.resolver.results import (
    Found,
    LookupResult,
    NotFound,
    ProfileSource,
    best_effort,
    first_found,
)
from src.portal_auth.resolver.sources import ServerResolverSource, TableSource

__all__ = [
    "ProfileResolver",
    "Found",
    "NotFound",
    "LookupResult",
    "ProfileSource",
    "best_effort",
    "first_found",
    "TableSource",
    "ServerResolverSource",
]
