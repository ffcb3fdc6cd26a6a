# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import UUIDBase, now_utc

_ZERO = Decimal("0.00")


class LeaveBalance(UUIDBase, table=True):
    """Per employee, leave type and year ledger of allocated, used and pending days."""

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_leave_balance_employee_type_year"),
        sa.Index("ix_leave_balance_org_year", "organization_id", "year"),
    )

    organization_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    year: int
    allocated_days: Decimal = Field(default=_ZERO, max_digits=6, decimal_places=2)
    used_days: Decimal = Field(default=_ZERO, max_digits=6, decimal_places=2)
    pending_days: Decimal = Field(default=_ZERO, max_digits=6, decimal_places=2)
    carried_forward_days: Decimal = Field(default=_ZERO, max_digits=6, decimal_places=2)
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": now_utc},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})

    @property
    def remaining_days(self) -> Decimal:
        return self.allocated_days + self.carried_forward_days - self.used_days - self.pending_days

    def can_take_leave(self, days: Decimal, allow_negative: bool = False) -> bool:
        """Whether ``days`` more can be reserved against this balance."""
        return allow_negative or self.remaining_days >= days
