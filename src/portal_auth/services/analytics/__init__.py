"""Product analytics integrations."""

from src.portal_auth.services.analytics.posthog import PostHogService

__all__ = ["PostHogService"]
