"""Internal (employee) profile resolver feature."""

from src.portal_auth.features.employee.handlers import router

__all__ = ["router"]
