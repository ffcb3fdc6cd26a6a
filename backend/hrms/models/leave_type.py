# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import TimestampMixin, UUIDBase
from hrms.models.enums import LeaveCategory


class LeaveType(UUIDBase, TimestampMixin, table=True):
    """Organization-scoped leave category and the policy that governs it."""

    __tablename__ = "leave_type"
    __table_args__ = (sa.UniqueConstraint("organization_id", "code", name="uq_leave_type_org_code"),)

    organization_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=100)
    code: str = Field(max_length=50)
    description: str | None = None
    category: str = Field(default=LeaveCategory.OTHER, max_length=50)

    # Policy fields, editable after the type is in use.
    is_paid: bool = True
    max_days_per_year: int | None = None
    is_carry_forward: bool = False
    max_carry_forward_days: int = 0
    requires_approval: bool = True
    allow_negative_balance: bool = False
    min_days_notice: int | None = None
    is_active: bool = Field(default=True, index=True)

    def is_applicable_to(self, employee_is_active: bool) -> bool:
        """Whether an employee may apply for this leave type."""
        return self.is_active and employee_is_active
