"""Per-source lookup results and the or-else combinator that chains sources."""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

from src.portal_auth.models import Identity, Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    """A source matched a profile."""

    profile: Profile
    source: str


@dataclass(frozen=True)
class NotFound:
    """A source had nothing (or failed, which counts as nothing)."""

    source: str
    reason: str | None = None


LookupResult = Found | NotFound


class ProfileSource(Protocol):
    """One place a profile can be looked up from."""

    name: str

    async def lookup(self, identity: Identity) -> LookupResult: ...


class BestEffortSource:
    """
    Wraps a source so that any failure reads as "found nothing".

    Timeouts, transport errors and database errors are logged with their
    cause and turned into ``NotFound``; resolution then moves on to the next
    source.
    """

    def __init__(self, source: ProfileSource):
        self.source = source
        self.name = source.name

    async def lookup(self, identity: Identity) -> LookupResult:
        try:
            return await self.source.lookup(identity)
        except Exception as e:
            logger.warning(
                f"Profile source {self.name} failed, treating as not found: {e}",
                extra={"error_type": "profile_source_failed", "source": self.name},
            )
            return NotFound(self.name, reason=f"{type(e).__name__}: {e}")


def best_effort(source: ProfileSource) -> BestEffortSource:
    """Wrap ``source`` so its failures are swallowed as ``NotFound``."""
    if isinstance(source, BestEffortSource):
        return source
    return BestEffortSource(source)


async def first_found(
    identity: Identity,
    sources: Iterable[ProfileSource],
    accept: Callable[[Profile], bool] | None = None,
) -> LookupResult:
    """
    Try sources in order and stop at the first accepted match.

    Args:
        identity: Identity being resolved
        sources: Sources in priority order
        accept: Predicate a found profile must pass (e.g. role eligibility);
            rejected matches count as not found

    Returns:
        The first accepted ``Found``, otherwise the last ``NotFound``

    Example:
        >>> result = await first_found(identity, [by_id, by_email], accept=portal_accepts)
        >>> profile = result.profile if isinstance(result, Found) else None
    """
    result: LookupResult = NotFound("none", reason="no sources")

    for source in sources:
        result = await source.lookup(identity)
        if isinstance(result, NotFound):
            continue
        if accept is None or accept(result.profile):
            return result

        logger.info(
            f"Profile from {result.source} rejected (role {result.profile.role})",
            extra={"source": result.source, "role": result.profile.role},
        )
        result = NotFound(result.source, reason=f"role {result.profile.role} not eligible")

    return result
