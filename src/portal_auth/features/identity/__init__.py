"""Caller identity feature."""

from src.portal_auth.features.identity.handlers import router

__all__ = ["router"]
