# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from hrms.models.enums import HalfDayPeriod, LeaveStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeaveRequestPayload(BaseModel):
    """Request body for applying for leave.

    Date order is checked by the service so that the error is reported the
    same way whether the request arrives over HTTP or from a direct call.
    """

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: Decimal | None = Field(default=None, gt=0, max_digits=5, decimal_places=2)
    is_half_day: bool = False
    half_day_period: HalfDayPeriod | None = None
    reason: str | None = Field(default=None, max_length=2000)
    contact_details: str | None = Field(default=None, max_length=255)
    emergency_contact: str | None = Field(default=None, max_length=255)
    is_emergency: bool = False


class UpdateLeaveRequestPayload(BaseModel):
    """Request body for editing a pending leave request."""

    start_date: date
    end_date: date
    total_days: Decimal | None = Field(default=None, gt=0, max_digits=5, decimal_places=2)
    is_half_day: bool = False
    half_day_period: HalfDayPeriod | None = None
    reason: str | None = Field(default=None, max_length=2000)
    contact_details: str | None = Field(default=None, max_length=255)
    emergency_contact: str | None = Field(default=None, max_length=255)


class ReviewPayload(BaseModel):
    """Request body for approve/reject actions."""

    comments: str | None = Field(default=None, max_length=1000)


class CancelPayload(BaseModel):
    """Request body for cancel/withdraw actions."""

    reason: str | None = Field(default=None, max_length=1000)


class AvailabilityQuery(BaseModel):
    """Request body for checking whether leave can be taken."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    is_half_day: bool = False


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    organization_id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: Decimal
    is_half_day: bool
    half_day_period: HalfDayPeriod | None
    reason: str | None
    contact_details: str | None
    emergency_contact: str | None
    is_emergency: bool
    status: LeaveStatus
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    review_comments: str | None
    approved_at: datetime | None
    applied_at: datetime
    cancellation_reason: str | None
    cancelled_at: datetime | None
    created_at: datetime


class LeaveRequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int


class AvailabilityResponse(BaseModel):
    """Outcome of an availability check."""

    available: bool
    message: str
    requested_days: Decimal | None = None
    remaining_days: Decimal | None = None
