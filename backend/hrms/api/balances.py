# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from hrms.api.deps import AuthDep, HRDep, validate_organization_scope
from hrms.db import SessionDep
from hrms.exceptions import AuthorizationError
from hrms.models.enums import Role
from hrms.schemas.balance import (
    AdjustAllocationRequest,
    BalanceListResponse,
    BalanceResponse,
    CarryForwardRequest,
    CarryForwardResult,
    InitializeBalancesRequest,
)
from hrms.services import balance as balance_service
from hrms.services.audit import record_access_denied

employee_balance_router = APIRouter(
    prefix="/organizations/{organization_id}/employees/{employee_id}/balances",
    tags=["balances"],
    dependencies=[Depends(validate_organization_scope)],
)

balance_admin_router = APIRouter(
    prefix="/organizations/{organization_id}/balances",
    tags=["balances"],
    dependencies=[Depends(validate_organization_scope)],
)


@employee_balance_router.get("", response_model=BalanceListResponse)
async def get_employee_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> BalanceListResponse:
    """Get all leave balances of an employee for a year (defaults to the current year)."""
    if auth.role == Role.EMPLOYEE and employee_id != auth.user_id:
        await record_access_denied(auth, f"Balance lookup for employee {employee_id}")
        raise AuthorizationError("Employees can only view their own balances")
    return await balance_service.get_employee_balances(
        session, auth.organization_id, employee_id, year or date.today().year
    )


@employee_balance_router.post("/initialize", response_model=BalanceListResponse)
async def initialize_balances(
    employee_id: uuid.UUID,
    payload: InitializeBalancesRequest,
    session: SessionDep,
    auth: HRDep,
) -> BalanceListResponse:
    """Create the employee's missing balances for a year (HR only)."""
    await balance_service.initialize_balances(session, auth.organization_id, employee_id, payload.year, auth=auth)
    return await balance_service.get_employee_balances(session, auth.organization_id, employee_id, payload.year)


@employee_balance_router.put("", response_model=BalanceResponse)
async def adjust_allocation(
    employee_id: uuid.UUID,
    payload: AdjustAllocationRequest,
    session: SessionDep,
    auth: HRDep,
) -> BalanceResponse:
    """Set an employee's allocation for a leave type and year (HR only)."""
    return await balance_service.adjust_allocation(session, auth, employee_id, payload)


@balance_admin_router.post("/carry-forward", response_model=CarryForwardResult)
async def process_carry_forward(
    payload: CarryForwardRequest,
    session: SessionDep,
    auth: HRDep,
) -> CarryForwardResult:
    """Carry unused days into the next year (HR only)."""
    return await balance_service.process_carry_forward(
        session, auth.organization_id, payload.from_year, payload.to_year, auth=auth
    )
