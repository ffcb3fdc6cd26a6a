# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Balance response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Balance for a single leave type and year."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    leave_type_code: str
    leave_type_name: str
    year: int
    allocated_days: Decimal
    used_days: Decimal
    pending_days: Decimal
    carried_forward_days: Decimal
    remaining_days: Decimal
    updated_at: datetime | None

    def audit_entity_id(self) -> str | None:
        return str(self.id)

    def audit_entity_name(self) -> str | None:
        return f"{self.leave_type_code} {self.year}"


class BalanceListResponse(BaseModel):
    """All leave balances for an employee in a year."""

    items: list[BalanceResponse]
    total: int
    year: int


# ---------------------------------------------------------------------------
# Admin payloads
# ---------------------------------------------------------------------------


class AdjustAllocationRequest(BaseModel):
    """Request body for setting an employee's allocation for a leave type and year."""

    leave_type_id: uuid.UUID
    year: int = Field(ge=2000, le=2100)
    allocated_days: Decimal = Field(ge=0, max_digits=6, decimal_places=2)
    reason: str = Field(min_length=1, max_length=1000)


class InitializeBalancesRequest(BaseModel):
    """Request body for creating an employee's missing balances for a year."""

    year: int = Field(ge=2000, le=2100)


class CarryForwardRequest(BaseModel):
    """Request body for running year-end carry forward."""

    from_year: int = Field(ge=2000, le=2100)
    to_year: int = Field(ge=2000, le=2100)


class CarryForwardResult(BaseModel):
    """Summary of a carry-forward run."""

    from_year: int
    to_year: int
    processed: int
    carried: int
    skipped: int
