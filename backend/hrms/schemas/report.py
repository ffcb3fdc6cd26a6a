# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel


class LeaveStatisticsResponse(BaseModel):
    """Leave request counts for an organization and year."""

    year: int
    total_requests: int
    pending_requests: int
    approved_requests: int
    rejected_requests: int
    cancelled_requests: int
    withdrawn_requests: int
    expired_requests: int
    approved_days: Decimal


class LeaveCalendarEntry(BaseModel):
    """A pending or approved leave shown on the organization calendar."""

    request_id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str | None
    leave_type_id: uuid.UUID
    leave_type_code: str
    start_date: date
    end_date: date
    total_days: Decimal
    status: str


class LeaveCalendarResponse(BaseModel):
    """Leave calendar for a date range."""

    start_date: date
    end_date: date
    items: list[LeaveCalendarEntry]
