from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hrms.exceptions import EntityNotFoundError, ValidationError
from hrms.models.balance import LeaveBalance
from hrms.models.enums import AuditAction, AuditEntityType, AuditSeverity
from hrms.models.leave_type import LeaveType
from hrms.schemas.balance import BalanceListResponse, BalanceResponse, CarryForwardResult
from hrms.services.audit import get_audit_logger, model_to_audit_dict, write_audit_log
from hrms.services.auditable import auditable
from hrms.services.employee import get_employee_directory
from hrms.services.leave_type import get_leave_type_or_404

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.balance import AdjustAllocationRequest

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_balance_response(balance: LeaveBalance, leave_type: LeaveType) -> BalanceResponse:
    """Map a balance and its leave type to the response schema."""
    return BalanceResponse(
        id=balance.id,
        employee_id=balance.employee_id,
        leave_type_id=balance.leave_type_id,
        leave_type_code=leave_type.code,
        leave_type_name=leave_type.name,
        year=balance.year,
        allocated_days=balance.allocated_days,
        used_days=balance.used_days,
        pending_days=balance.pending_days,
        carried_forward_days=balance.carried_forward_days,
        remaining_days=balance.remaining_days,
        updated_at=balance.updated_at,
    )


def _annual_allocation(leave_type: LeaveType) -> Decimal:
    if leave_type.max_days_per_year is None:
        return _ZERO
    return Decimal(leave_type.max_days_per_year)


def touch(balance: LeaveBalance) -> None:
    """Bump the balance version after a mutation."""
    balance.version += 1


async def get_or_create_balance_for_update(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
) -> LeaveBalance:
    """Get the balance row with a FOR UPDATE lock, creating it if absent.

    A new balance starts with the leave type's annual allocation. If another transaction
    inserts the same row first, the unique constraint rejects ours and that row is locked instead.
    """
    query = (
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type_id) == leave_type.id,
            col(LeaveBalance.year) == year,
        )
        .with_for_update()
    )
    result = await session.execute(query)
    balance = result.scalar_one_or_none()
    if balance is not None:
        return balance

    balance = LeaveBalance(
        organization_id=organization_id,
        employee_id=employee_id,
        leave_type_id=leave_type.id,
        year=year,
        allocated_days=_annual_allocation(leave_type),
    )
    try:
        async with session.begin_nested():
            session.add(balance)
            await session.flush()
    except IntegrityError:
        logger.info(
            "Balance for employee %s, leave type %s, year %d created concurrently", employee_id, leave_type.id, year
        )
        result = await session.execute(query)
        return result.scalar_one()

    return balance


async def _require_employee(organization_id: uuid.UUID, employee_id: uuid.UUID) -> None:
    employee = await get_employee_directory().get_employee(organization_id, employee_id)
    if employee is None:
        raise EntityNotFoundError("Employee", employee_id)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_employee_balances(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    year: int,
) -> BalanceListResponse:
    """All of an employee's balances for a year, ordered by leave type name."""
    result = await session.execute(
        select(LeaveBalance, LeaveType)
        .join(LeaveType, col(LeaveType.id) == col(LeaveBalance.leave_type_id))
        .where(
            col(LeaveBalance.organization_id) == organization_id,
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.year) == year,
        )
        .order_by(col(LeaveType.name))
    )
    items = [build_balance_response(balance, leave_type) for balance, leave_type in result.all()]
    return BalanceListResponse(items=items, total=len(items), year=year)


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def initialize_balances(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    year: int,
    auth: AuthContext | None = None,
) -> int:
    """Create the employee's missing balances for every active leave type.

    Existing balances are left untouched, so running this twice is harmless.
    Returns the number of balances created.
    """
    await _require_employee(organization_id, employee_id)
    result = await session.execute(
        select(LeaveType).where(
            col(LeaveType.organization_id) == organization_id,
            col(LeaveType.is_active).is_(True),
        )
    )
    leave_types = list(result.scalars().all())

    existing_result = await session.execute(
        select(col(LeaveBalance.leave_type_id)).where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.year) == year,
        )
    )
    existing = {row[0] for row in existing_result.all()}

    created = 0
    for leave_type in leave_types:
        if leave_type.id in existing:
            continue
        session.add(
            LeaveBalance(
                organization_id=organization_id,
                employee_id=employee_id,
                leave_type_id=leave_type.id,
                year=year,
                allocated_days=_annual_allocation(leave_type),
            )
        )
        created += 1

    await session.commit()
    if created:
        logger.info("Initialized %d balances for employee %s, year %d", created, employee_id, year)
        await get_audit_logger().log_system_event(
            AuditAction.INITIALIZE.value,
            f"Initialized {created} leave balances for year {year}",
            AuditSeverity.LOW.value,
            {"organization_id": organization_id, "employee_id": employee_id, "year": year, "created": created},
            auth=auth,
            entity_type=AuditEntityType.LEAVE_BALANCE.value,
            entity_id=str(employee_id),
        )
    return created


async def adjust_allocation(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: AdjustAllocationRequest,
) -> BalanceResponse:
    """Set an employee's allocation for a leave type and year.

    The new allocation may not push the remaining balance below zero unless
    the leave type allows negative balances.
    """
    await _require_employee(auth.organization_id, employee_id)
    leave_type = await get_leave_type_or_404(session, auth.organization_id, payload.leave_type_id)

    balance = await get_or_create_balance_for_update(
        session, auth.organization_id, employee_id, leave_type, payload.year
    )
    before_dict = model_to_audit_dict(balance)

    new_remaining = payload.allocated_days + balance.carried_forward_days - balance.used_days - balance.pending_days
    if new_remaining < 0 and not leave_type.allow_negative_balance:
        raise ValidationError(
            "Allocation is lower than the days already used or pending",
            field_errors={"allocated_days": f"must be at least {payload.allocated_days - new_remaining}"},
        )

    balance.allocated_days = payload.allocated_days
    touch(balance)
    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.LEAVE_BALANCE,
        entity_id=balance.id,
        entity_name=f"{leave_type.code} {balance.year}",
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(balance),
        description=payload.reason,
        severity=AuditSeverity.MEDIUM,
    )

    await session.commit()
    await session.refresh(balance)
    return build_balance_response(balance, leave_type)


@auditable(AuditAction.CARRY_FORWARD, AuditEntityType.LEAVE_BALANCE, severity=AuditSeverity.MEDIUM)
async def process_carry_forward(
    session: AsyncSession,
    organization_id: uuid.UUID,
    from_year: int,
    to_year: int,
    auth: AuthContext | None = None,
) -> CarryForwardResult:
    """Carry unused days of carry-forward leave types into the next year.

    Each eligible balance carries ``min(remaining, max_carry_forward_days)``.
    The carried amount replaces any earlier value, so reruns do not double up.
    """
    if to_year <= from_year:
        raise ValidationError(
            "Carry forward target year must be after the source year",
            field_errors={"to_year": "must be greater than from_year"},
        )

    result = await session.execute(
        select(LeaveBalance, LeaveType)
        .join(LeaveType, col(LeaveType.id) == col(LeaveBalance.leave_type_id))
        .where(
            col(LeaveBalance.organization_id) == organization_id,
            col(LeaveBalance.year) == from_year,
        )
        .order_by(col(LeaveBalance.employee_id))
    )
    rows = list(result.all())

    carried = 0
    for balance, leave_type in rows:
        remaining = balance.remaining_days
        if not leave_type.is_carry_forward or remaining <= 0:
            continue

        amount = min(remaining, Decimal(leave_type.max_carry_forward_days))
        if amount <= 0:
            continue
        target = await get_or_create_balance_for_update(
            session, organization_id, balance.employee_id, leave_type, to_year
        )
        if target.carried_forward_days != amount:
            target.carried_forward_days = amount
            touch(target)
        carried += 1

    await session.commit()

    logger.info(
        "Carry forward %s -> %s for organization %s: %d balances, %d carried",
        from_year,
        to_year,
        organization_id,
        len(rows),
        carried,
    )
    return CarryForwardResult(
        from_year=from_year,
        to_year=to_year,
        processed=len(rows),
        carried=carried,
        skipped=len(rows) - carried,
    )
