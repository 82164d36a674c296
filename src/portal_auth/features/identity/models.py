"""Pydantic models for the identity endpoint."""

from typing import Any

from pydantic import BaseModel, Field


class AuthMeResponse(BaseModel):
    """Response model for GET /api/auth/me."""

    user: dict[str, Any] | None = Field(None, description="Caller summary, null when unresolved")
    role: str | None = Field(None, description="Canonical portal role")
