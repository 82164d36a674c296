"""PostHog analytics service for authentication event tracking."""

import posthog

from src.portal_auth.config import settings


class PostHogService:
    """Service for tracking authentication events via PostHog."""

    def __init__(self) -> None:
        """Initialize PostHog service."""
        if settings.posthog_api_key:
            posthog.api_key = settings.posthog_api_key
            posthog.host = settings.posthog_host

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Track an event.

        Args:
            distinct_id: Unique identifier for the user ("anonymous" before sign-in)
            event: Event name (e.g., "login_succeeded", "profile_synced")
            properties: Optional event properties

        Example:
            >>> service = PostHogService()
            >>> service.capture("user-123", "login_failed", {"portal": "vendor"})
        """
        if not settings.posthog_api_key:
            return

        posthog.capture(distinct_id=distinct_id, event=event, properties=properties or {})
