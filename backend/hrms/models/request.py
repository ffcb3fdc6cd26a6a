# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import TimestampMixin, UUIDBase, now_utc
from hrms.models.enums import TERMINAL_STATUSES, LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """An employee's request for a date range against a leave type."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_org_status", "organization_id", "status"),
        sa.Index("ix_leave_request_employee_dates", "employee_id", "start_date", "end_date"),
    )

    organization_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    total_days: Decimal = Field(max_digits=5, decimal_places=2)
    is_half_day: bool = False
    half_day_period: str | None = Field(default=None, max_length=20)
    reason: str | None = None
    contact_details: str | None = Field(default=None, max_length=255)
    emergency_contact: str | None = Field(default=None, max_length=255)
    is_emergency: bool = False
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    reviewed_by: uuid.UUID | None = None
    reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    review_comments: str | None = None
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    applied_at: datetime = Field(default_factory=now_utc, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    cancellation_reason: str | None = Field(default=None, max_length=1000)
    cancelled_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]

    def can_be_modified(self) -> bool:
        return self.status == LeaveStatus.PENDING

    def can_be_cancelled(self) -> bool:
        return self.status in (LeaveStatus.PENDING, LeaveStatus.APPROVED)

    def can_be_withdrawn(self) -> bool:
        return self.status == LeaveStatus.PENDING

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def overlaps(self, start_date: date, end_date: date) -> bool:
        """Whether this request's inclusive date range intersects [start_date, end_date]."""
        return self.start_date <= end_date and self.end_date >= start_date
