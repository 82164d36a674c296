"""Pydantic models for the buyer resolver endpoint."""

from typing import Any

from pydantic import BaseModel, Field


class BuyerProfileResponse(BaseModel):
    """Response model for GET /api/auth/buyer/profile."""

    success: bool = True
    buyer: dict[str, Any] = Field(description="Buyer row")
    account_status: str = Field("ACTIVE", description="ACTIVE, SUSPENDED, ...")
