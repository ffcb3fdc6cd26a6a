from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from hrms.exceptions import EntityNotFoundError, StateConflictError
from hrms.models.balance import LeaveBalance
from hrms.models.enums import AuditAction, AuditEntityType, LeaveCategory
from hrms.models.leave_type import LeaveType
from hrms.models.request import LeaveRequest
from hrms.schemas.leave_type import LeaveTypeListResponse, LeaveTypeResponse
from hrms.services.auditable import auditable

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.leave_type import CreateLeaveTypeRequest, UpdateLeaveTypeRequest

# Identity fields that cannot change once balances or requests reference the type.
IMMUTABLE_WHEN_REFERENCED = ("code", "category")
# Only these columns accept an explicit null on update; a null elsewhere means "leave unchanged".
CLEARABLE_FIELDS = ("description", "max_days_per_year", "min_days_notice")


def build_leave_type_response(leave_type: LeaveType) -> LeaveTypeResponse:
    """Map a leave type model to its response schema."""
    return LeaveTypeResponse(
        id=leave_type.id,
        organization_id=leave_type.organization_id,
        name=leave_type.name,
        code=leave_type.code,
        description=leave_type.description,
        category=LeaveCategory(leave_type.category),
        is_paid=leave_type.is_paid,
        max_days_per_year=leave_type.max_days_per_year,
        is_carry_forward=leave_type.is_carry_forward,
        max_carry_forward_days=leave_type.max_carry_forward_days,
        requires_approval=leave_type.requires_approval,
        allow_negative_balance=leave_type.allow_negative_balance,
        min_days_notice=leave_type.min_days_notice,
        is_active=leave_type.is_active,
        created_at=leave_type.created_at,
        updated_at=leave_type.updated_at,
    )


async def get_leave_type_or_404(
    session: AsyncSession,
    organization_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveType:
    """Fetch a leave type scoped to the organization. Raises 404 if not found."""
    query = select(LeaveType).where(
        col(LeaveType.id) == leave_type_id,
        col(LeaveType.organization_id) == organization_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    leave_type = result.scalar_one_or_none()
    if leave_type is None:
        raise EntityNotFoundError("Leave type", leave_type_id)
    return leave_type


async def _code_exists(session: AsyncSession, organization_id: uuid.UUID, code: str) -> bool:
    result = await session.execute(
        select(col(LeaveType.id)).where(
            col(LeaveType.organization_id) == organization_id,
            col(LeaveType.code) == code,
        )
    )
    return result.first() is not None


async def is_referenced(session: AsyncSession, leave_type_id: uuid.UUID) -> bool:
    """Whether any balance or request points at the leave type."""
    balance = await session.execute(
        select(col(LeaveBalance.id)).where(col(LeaveBalance.leave_type_id) == leave_type_id).limit(1)
    )
    if balance.first() is not None:
        return True
    request = await session.execute(
        select(col(LeaveRequest.id)).where(col(LeaveRequest.leave_type_id) == leave_type_id).limit(1)
    )
    return request.first() is not None


@auditable(AuditAction.CREATE, AuditEntityType.LEAVE_TYPE)
async def create_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveTypeRequest,
) -> LeaveTypeResponse:
    """Create a leave type for the caller's organization."""
    code = payload.code.upper()
    if await _code_exists(session, auth.organization_id, code):
        raise StateConflictError(f"Leave type with code {code} already exists")

    leave_type = LeaveType(
        organization_id=auth.organization_id,
        **payload.model_dump(exclude={"code"}),
        code=code,
    )
    session.add(leave_type)
    await session.commit()
    await session.refresh(leave_type)
    return build_leave_type_response(leave_type)


async def list_leave_types(
    session: AsyncSession,
    organization_id: uuid.UUID,
    active_only: bool = True,
) -> LeaveTypeListResponse:
    """List the organization's leave types ordered by name."""
    filters = [col(LeaveType.organization_id) == organization_id]
    if active_only:
        filters.append(col(LeaveType.is_active).is_(True))

    result = await session.execute(select(LeaveType).where(*filters).order_by(col(LeaveType.name)))
    leave_types = list(result.scalars().all())
    return LeaveTypeListResponse(items=[build_leave_type_response(t) for t in leave_types], total=len(leave_types))


async def get_leave_type(
    session: AsyncSession,
    organization_id: uuid.UUID,
    leave_type_id: uuid.UUID,
) -> LeaveTypeResponse:
    return build_leave_type_response(await get_leave_type_or_404(session, organization_id, leave_type_id))


@auditable(AuditAction.UPDATE, AuditEntityType.LEAVE_TYPE)
async def update_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    leave_type_id: uuid.UUID,
    payload: UpdateLeaveTypeRequest,
) -> LeaveTypeResponse:
    """Apply a partial update.

    Once balances or requests reference the type only its name, description
    and policy fields may change.
    """
    leave_type = await get_leave_type_or_404(session, auth.organization_id, leave_type_id, for_update=True)
    changes = payload.model_dump(exclude_unset=True)
    if "code" in changes and changes["code"] is not None:
        changes["code"] = changes["code"].upper()

    identity_changes = [
        name
        for name in IMMUTABLE_WHEN_REFERENCED
        if name in changes and changes[name] is not None and changes[name] != getattr(leave_type, name)
    ]
    if identity_changes and await is_referenced(session, leave_type.id):
        raise StateConflictError(
            f"Cannot change {', '.join(identity_changes)} of a leave type that is already in use"
        )
    if "code" in identity_changes and await _code_exists(session, auth.organization_id, changes["code"]):
        raise StateConflictError(f"Leave type with code {changes['code']} already exists")

    for name, value in changes.items():
        if value is None and name not in CLEARABLE_FIELDS:
            continue
        setattr(leave_type, name, value)

    await session.commit()
    await session.refresh(leave_type)
    return build_leave_type_response(leave_type)


@auditable(AuditAction.DELETE, AuditEntityType.LEAVE_TYPE)
async def deactivate_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    leave_type_id: uuid.UUID,
) -> LeaveTypeResponse:
    """Soft-delete a leave type. Existing balances and requests are kept."""
    leave_type = await get_leave_type_or_404(session, auth.organization_id, leave_type_id, for_update=True)
    if not leave_type.is_active:
        raise StateConflictError("Leave type is already inactive")
    leave_type.is_active = False
    await session.commit()
    await session.refresh(leave_type)
    return build_leave_type_response(leave_type)
