# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from hrms.models.enums import LeaveCategory

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeaveTypeRequest(BaseModel):
    """Request body for creating a leave type."""

    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_\-]+$")
    description: str | None = None
    category: LeaveCategory = LeaveCategory.OTHER
    is_paid: bool = True
    max_days_per_year: int | None = Field(default=None, ge=0, le=366)
    is_carry_forward: bool = False
    max_carry_forward_days: int = Field(default=0, ge=0)
    requires_approval: bool = True
    allow_negative_balance: bool = False
    min_days_notice: int | None = Field(default=None, ge=0)


class UpdateLeaveTypeRequest(BaseModel):
    """Partial update for a leave type. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_\-]+$")
    description: str | None = None
    category: LeaveCategory | None = None
    is_paid: bool | None = None
    max_days_per_year: int | None = Field(default=None, ge=0, le=366)
    is_carry_forward: bool | None = None
    max_carry_forward_days: int | None = Field(default=None, ge=0)
    requires_approval: bool | None = None
    allow_negative_balance: bool | None = None
    min_days_notice: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveTypeResponse(BaseModel):
    """Response schema for a leave type."""

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    code: str
    description: str | None
    category: LeaveCategory
    is_paid: bool
    max_days_per_year: int | None
    is_carry_forward: bool
    max_carry_forward_days: int
    requires_approval: bool
    allow_negative_balance: bool
    min_days_notice: int | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class LeaveTypeListResponse(BaseModel):
    """List of leave types."""

    items: list[LeaveTypeResponse]
    total: int
