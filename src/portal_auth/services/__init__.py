"""Shared services for external integrations."""
