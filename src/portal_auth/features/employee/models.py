"""Pydantic models for the employee resolver endpoint."""

from typing import Any

from pydantic import BaseModel, Field


class EmployeeMeResponse(BaseModel):
    """Response model for GET /api/employee/me."""

    success: bool = True
    employee: dict[str, Any] = Field(description="Employee row with normalized role")
