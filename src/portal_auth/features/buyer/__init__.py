"""Buyer profile resolver feature."""

from src.portal_auth.features.buyer.handlers import router

__all__ = ["router"]
