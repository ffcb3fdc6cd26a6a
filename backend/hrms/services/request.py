# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, NoReturn

from sqlalchemy import func, select
from sqlmodel import col

from hrms.exceptions import (
    AuthorizationError,
    ComplianceViolationError,
    EntityNotFoundError,
    StateConflictError,
    ValidationError,
)
from hrms.models.balance import LeaveBalance
from hrms.models.base import now_utc
from hrms.models.enums import (
    ACTIVE_STATUSES,
    AuditAction,
    AuditEntityType,
    HalfDayPeriod,
    LeaveStatus,
    Role,
)
from hrms.models.request import LeaveRequest
from hrms.schemas.request import AvailabilityResponse, LeaveRequestListResponse, LeaveRequestResponse
from hrms.services.audit import get_audit_logger, model_to_audit_dict, record_access_denied, write_audit_log
from hrms.services.balance import get_or_create_balance_for_update, touch
from hrms.services.employee import get_employee_directory
from hrms.services.leave_days import calculate_leave_days, validate_date_order, validate_half_day
from hrms.services.leave_type import get_leave_type_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.models.leave_type import LeaveType
    from hrms.schemas.auth import AuthContext
    from hrms.schemas.request import (
        AvailabilityQuery,
        CancelPayload,
        CreateLeaveRequestPayload,
        ReviewPayload,
        UpdateLeaveRequestPayload,
    )
    from hrms.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)

MIN_NOTICE_RULE = "LEAVE_MIN_NOTICE"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: LeaveRequest) -> LeaveRequestResponse:
    """Map a request model to its response schema."""
    return LeaveRequestResponse(
        id=request.id,
        organization_id=request.organization_id,
        employee_id=request.employee_id,
        leave_type_id=request.leave_type_id,
        start_date=request.start_date,
        end_date=request.end_date,
        total_days=request.total_days,
        is_half_day=request.is_half_day,
        half_day_period=HalfDayPeriod(request.half_day_period) if request.half_day_period else None,
        reason=request.reason,
        contact_details=request.contact_details,
        emergency_contact=request.emergency_contact,
        is_emergency=request.is_emergency,
        status=LeaveStatus(request.status),
        reviewed_by=request.reviewed_by,
        reviewed_at=request.reviewed_at,
        review_comments=request.review_comments,
        approved_at=request.approved_at,
        applied_at=request.applied_at,
        cancellation_reason=request.cancellation_reason,
        cancelled_at=request.cancelled_at,
        created_at=request.created_at,
    )


async def _deny(auth: AuthContext, message: str) -> NoReturn:
    await record_access_denied(auth, message)
    raise AuthorizationError(message)


async def direct_report_ids(organization_id: uuid.UUID, manager_id: uuid.UUID) -> list[uuid.UUID]:
    employees = await get_employee_directory().list_employees(organization_id)
    return [e.id for e in employees if e.manager_id == manager_id]


async def _get_request_or_404(
    session: AsyncSession,
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a request by ID scoped to the organization. Raises 404 if not found."""
    query = select(LeaveRequest).where(
        col(LeaveRequest.id) == request_id,
        col(LeaveRequest.organization_id) == organization_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    request = result.scalar_one_or_none()
    if request is None:
        raise EntityNotFoundError("Leave request", request_id)
    return request


async def _find_overlap(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_request_id: uuid.UUID | None = None,
) -> LeaveRequest | None:
    """Return an active request of the employee that shares a date with the range.

    Active means PENDING or APPROVED. Date ranges are inclusive, so they overlap
    when existing.start_date <= new.end_date AND existing.end_date >= new.start_date.
    """
    query = select(LeaveRequest).where(
        col(LeaveRequest.organization_id) == organization_id,
        col(LeaveRequest.employee_id) == employee_id,
        col(LeaveRequest.status).in_([s.value for s in ACTIVE_STATUSES]),
        col(LeaveRequest.start_date) <= end_date,
        col(LeaveRequest.end_date) >= start_date,
    )
    if exclude_request_id is not None:
        query = query.where(col(LeaveRequest.id) != exclude_request_id)

    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none()


async def _check_request_overlap(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_request_id: uuid.UUID | None = None,
) -> None:
    """Raise 409 if an active request overlaps the given date range."""
    existing = await _find_overlap(session, organization_id, employee_id, start_date, end_date, exclude_request_id)
    if existing is not None:
        raise StateConflictError(
            f"Leave overlaps with an existing {existing.status.lower()} request "
            f"({existing.start_date.isoformat()} to {existing.end_date.isoformat()})"
        )


async def _get_active_employee(organization_id: uuid.UUID, employee_id: uuid.UUID) -> EmployeeInfo:
    employee = await get_employee_directory().get_employee(organization_id, employee_id)
    if employee is None:
        raise EntityNotFoundError("Employee", employee_id)
    if not employee.is_active:
        raise ValidationError("Employee is not active", field_errors={"employee_id": "employee is not active"})
    return employee


def _check_not_in_past(start_date: date, today: date) -> None:
    if start_date < today:
        raise ValidationError(
            "Leave cannot start in the past",
            field_errors={"start_date": "must be today or later"},
        )


async def _check_min_notice(
    auth: AuthContext,
    leave_type: LeaveType,
    start_date: date,
    today: date,
    entity_id: uuid.UUID | None = None,
) -> None:
    """Enforce the leave type's minimum notice, recording violations as compliance events."""
    if leave_type.min_days_notice is None:
        return
    days_until_leave = (start_date - today).days
    if days_until_leave >= leave_type.min_days_notice:
        return

    message = (
        f"{leave_type.name} requires at least {leave_type.min_days_notice} days notice, "
        f"got {days_until_leave}"
    )
    await get_audit_logger().log_compliance_event(
        AuditAction.COMPLIANCE_VIOLATION.value,
        MIN_NOTICE_RULE,
        "INSUFFICIENT_NOTICE",
        AuditEntityType.LEAVE_REQUEST.value,
        str(entity_id) if entity_id is not None else None,
        message,
        auth=auth,
    )
    raise ComplianceViolationError(MIN_NOTICE_RULE, message)


async def _resolve_total_days(
    session: AsyncSession,
    organization_id: uuid.UUID,
    start_date: date,
    end_date: date,
    is_half_day: bool,
    half_day_period: HalfDayPeriod | None,
    total_days: Decimal | None,
) -> Decimal:
    """Use the caller's day count if given, else count working days in the range."""
    validate_date_order(start_date, end_date)
    validate_half_day(start_date, end_date, is_half_day)
    if is_half_day and half_day_period is None:
        raise ValidationError(
            "Half-day leave needs a half_day_period",
            field_errors={"half_day_period": "required when is_half_day is true"},
        )
    if total_days is not None:
        return total_days
    return await calculate_leave_days(session, organization_id, start_date, end_date, is_half_day)


def _insufficient_balance(requested: Decimal, remaining: Decimal) -> ValidationError:
    return ValidationError(
        f"Insufficient leave balance: requested {requested} days, {remaining} remaining",
        field_errors={"total_days": f"exceeds remaining balance of {remaining}"},
    )


async def _ensure_can_review(auth: AuthContext, request: LeaveRequest) -> None:
    """Reviewers are admin, HR or the employee's direct manager, never the requester."""
    if not auth.is_reviewer:
        await _deny(auth, "Only managers and HR can review leave requests")
    if request.employee_id == auth.user_id:
        await _deny(auth, "Cannot review your own leave request")
    if auth.role == Role.MANAGER:
        employee = await get_employee_directory().get_employee(request.organization_id, request.employee_id)
        if employee is None or employee.manager_id != auth.user_id:
            await _deny(auth, "Managers can only review requests of their direct reports")


async def _lock_request_balance(session: AsyncSession, request: LeaveRequest) -> LeaveBalance:
    leave_type = await get_leave_type_or_404(session, request.organization_id, request.leave_type_id)
    return await get_or_create_balance_for_update(
        session, request.organization_id, request.employee_id, leave_type, request.start_date.year
    )


def _release_days(balance: LeaveBalance, request: LeaveRequest) -> None:
    """Give back the days the request holds, from pending or used depending on its status."""
    if request.status == LeaveStatus.APPROVED:
        balance.used_days -= request.total_days
    else:
        balance.pending_days -= request.total_days
    touch(balance)


async def _release(
    session: AsyncSession,
    request: LeaveRequest,
    auth: AuthContext | None,
    new_status: LeaveStatus,
    audit_action: AuditAction,
    *,
    review_comments: str | None = None,
    cancellation_reason: str | None = None,
) -> LeaveRequest:
    """Shared logic for reject, cancel, withdraw and expire.

    1. Lock the balance the request was charged against.
    2. Return the held days to it.
    3. Move the request to ``new_status``.
    4. Audit log with before/after.

    The caller commits.
    """
    balance = await _lock_request_balance(session, request)
    before_dict = model_to_audit_dict(request)
    now = now_utc()

    _release_days(balance, request)

    request.status = new_status.value
    if new_status == LeaveStatus.REJECTED:
        request.reviewed_by = auth.user_id if auth else None
        request.reviewed_at = now
        request.review_comments = review_comments
    elif new_status in (LeaveStatus.CANCELLED, LeaveStatus.WITHDRAWN):
        request.cancellation_reason = cancellation_reason
        request.cancelled_at = now

    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=request.id,
        action=audit_action,
        before_json=before_dict,
        after_json=model_to_audit_dict(request),
        organization_id=request.organization_id,
    )
    return request


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveRequestPayload,
    today: date | None = None,
) -> LeaveRequestResponse:
    """Apply for leave, reserving the days against the employee's balance.

    Flow:
    1. Validate the date range and that it does not start in the past
    2. Check the caller may apply for this employee
    3. Resolve the employee and leave type
    4. Calculate total days (weekends and holidays excluded)
    5. Check for overlapping requests
    6. Enforce minimum notice
    7. Lock the balance for the start date's year and check it
    8. Reserve the days (pending, or used when no approval is needed)
    9. Create the request and write the audit log
    10. Commit
    """
    today = today or date.today()

    # 1. Date range.
    validate_date_order(payload.start_date, payload.end_date)
    _check_not_in_past(payload.start_date, today)

    # 2. Employees apply for themselves; HR may apply on anyone's behalf.
    if payload.employee_id != auth.user_id and not auth.is_hr:
        await _deny(auth, "Employees can only apply for leave for themselves")

    # 3. Employee and leave type.
    employee = await _get_active_employee(auth.organization_id, payload.employee_id)
    leave_type = await get_leave_type_or_404(session, auth.organization_id, payload.leave_type_id)
    if not leave_type.is_applicable_to(employee.is_active):
        raise ValidationError(
            f"Leave type {leave_type.code} is not active",
            field_errors={"leave_type_id": "leave type is not active"},
        )

    # 4. Duration.
    total_days = await _resolve_total_days(
        session,
        auth.organization_id,
        payload.start_date,
        payload.end_date,
        payload.is_half_day,
        payload.half_day_period,
        payload.total_days,
    )

    # 5. Overlap.
    await _check_request_overlap(
        session, auth.organization_id, payload.employee_id, payload.start_date, payload.end_date
    )

    # 6. Notice.
    await _check_min_notice(auth, leave_type, payload.start_date, today)

    # 7. Balance.
    balance = await get_or_create_balance_for_update(
        session, auth.organization_id, payload.employee_id, leave_type, payload.start_date.year
    )
    if not balance.can_take_leave(total_days, leave_type.allow_negative_balance):
        raise _insufficient_balance(total_days, balance.remaining_days)

    # 8. Reserve.
    now = now_utc()
    auto_approve = not leave_type.requires_approval
    if auto_approve:
        balance.used_days += total_days
    else:
        balance.pending_days += total_days
    touch(balance)

    # 9. Create and audit.
    leave_request = LeaveRequest(
        organization_id=auth.organization_id,
        employee_id=payload.employee_id,
        leave_type_id=leave_type.id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        total_days=total_days,
        is_half_day=payload.is_half_day,
        half_day_period=payload.half_day_period.value if payload.is_half_day and payload.half_day_period else None,
        reason=payload.reason,
        contact_details=payload.contact_details,
        emergency_contact=payload.emergency_contact,
        is_emergency=payload.is_emergency,
        status=(LeaveStatus.APPROVED if auto_approve else LeaveStatus.PENDING).value,
        applied_at=now,
        approved_at=now if auto_approve else None,
    )
    session.add(leave_request)
    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave_request.id,
        entity_name=f"{employee.full_name} {leave_type.code}",
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(leave_request),
        description="Auto-approved, leave type does not require approval" if auto_approve else None,
    )

    # 10. Commit.
    await session.commit()
    await session.refresh(leave_request)
    logger.info(
        "Leave request %s created for employee %s (%s days, %s)",
        leave_request.id,
        leave_request.employee_id,
        total_days,
        leave_request.status,
    )
    return _build_request_response(leave_request)


async def update_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: UpdateLeaveRequestPayload,
    today: date | None = None,
) -> LeaveRequestResponse:
    """Edit a pending request's dates and details, moving its reservation."""
    today = today or date.today()
    leave_request = await _get_request_or_404(session, auth.organization_id, request_id, for_update=True)

    if leave_request.employee_id != auth.user_id:
        await _deny(auth, "Only the requester can edit a leave request")
    if not leave_request.can_be_modified():
        raise StateConflictError(f"Only pending requests can be edited, request is {leave_request.status}")

    validate_date_order(payload.start_date, payload.end_date)
    _check_not_in_past(payload.start_date, today)

    leave_type = await get_leave_type_or_404(session, auth.organization_id, leave_request.leave_type_id)
    total_days = await _resolve_total_days(
        session,
        auth.organization_id,
        payload.start_date,
        payload.end_date,
        payload.is_half_day,
        payload.half_day_period,
        payload.total_days,
    )
    await _check_request_overlap(
        session,
        auth.organization_id,
        leave_request.employee_id,
        payload.start_date,
        payload.end_date,
        exclude_request_id=leave_request.id,
    )
    await _check_min_notice(auth, leave_type, payload.start_date, today, entity_id=leave_request.id)

    # Lock in year order so concurrent edits across a year boundary cannot deadlock.
    old_year, new_year = leave_request.start_date.year, payload.start_date.year
    balances: dict[int, LeaveBalance] = {}
    for year in sorted({old_year, new_year}):
        balances[year] = await get_or_create_balance_for_update(
            session, auth.organization_id, leave_request.employee_id, leave_type, year
        )
    old_balance, new_balance = balances[old_year], balances[new_year]

    available = new_balance.remaining_days
    if old_balance is new_balance:
        available += leave_request.total_days
    if available < total_days and not leave_type.allow_negative_balance:
        raise _insufficient_balance(total_days, available)

    before_dict = model_to_audit_dict(leave_request)

    old_balance.pending_days -= leave_request.total_days
    new_balance.pending_days += total_days
    touch(old_balance)
    if new_balance is not old_balance:
        touch(new_balance)

    leave_request.start_date = payload.start_date
    leave_request.end_date = payload.end_date
    leave_request.total_days = total_days
    leave_request.is_half_day = payload.is_half_day
    leave_request.half_day_period = (
        payload.half_day_period.value if payload.is_half_day and payload.half_day_period else None
    )
    leave_request.reason = payload.reason
    leave_request.contact_details = payload.contact_details
    leave_request.emergency_contact = payload.emergency_contact

    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave_request.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave_request),
    )

    await session.commit()
    await session.refresh(leave_request)
    return _build_request_response(leave_request)


async def approve_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: ReviewPayload | None = None,
) -> LeaveRequestResponse:
    """Approve a pending request: its days move from pending to used."""
    leave_request = await _get_request_or_404(session, auth.organization_id, request_id, for_update=True)
    await _ensure_can_review(auth, leave_request)

    if leave_request.status != LeaveStatus.PENDING:
        raise StateConflictError(f"Only pending requests can be approved, request is {leave_request.status}")

    balance = await _lock_request_balance(session, leave_request)
    before_dict = model_to_audit_dict(leave_request)
    now = now_utc()

    # Pending decreases, used increases, remaining unchanged.
    balance.pending_days -= leave_request.total_days
    balance.used_days += leave_request.total_days
    touch(balance)

    leave_request.status = LeaveStatus.APPROVED.value
    leave_request.reviewed_by = auth.user_id
    leave_request.reviewed_at = now
    leave_request.review_comments = payload.comments if payload else None
    leave_request.approved_at = now

    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave_request.id,
        action=AuditAction.APPROVE,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave_request),
    )

    await session.commit()
    await session.refresh(leave_request)
    return _build_request_response(leave_request)


async def reject_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: ReviewPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending request: release its pending days."""
    leave_request = await _get_request_or_404(session, auth.organization_id, request_id, for_update=True)
    await _ensure_can_review(auth, leave_request)

    if leave_request.status != LeaveStatus.PENDING:
        raise StateConflictError(f"Only pending requests can be rejected, request is {leave_request.status}")

    await _release(
        session,
        leave_request,
        auth,
        LeaveStatus.REJECTED,
        AuditAction.REJECT,
        review_comments=payload.comments if payload else None,
    )
    await session.commit()
    await session.refresh(leave_request)
    return _build_request_response(leave_request)


async def cancel_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: CancelPayload,
) -> LeaveRequestResponse:
    """Cancel a pending or approved request, returning its days to the balance.

    The requester or HR can cancel. A reason is required.
    """
    if not payload.reason or not payload.reason.strip():
        raise ValidationError("Cancellation reason is required", field_errors={"reason": "must not be blank"})

    leave_request = await _get_request_or_404(session, auth.organization_id, request_id, for_update=True)

    if leave_request.employee_id != auth.user_id and not auth.is_hr:
        await _deny(auth, "Not authorized to cancel this leave request")
    if not leave_request.can_be_cancelled():
        raise StateConflictError(f"Cannot cancel a request that is {leave_request.status}")

    await _release(
        session,
        leave_request,
        auth,
        LeaveStatus.CANCELLED,
        AuditAction.CANCEL,
        cancellation_reason=payload.reason.strip(),
    )
    await session.commit()
    await session.refresh(leave_request)
    return _build_request_response(leave_request)


async def withdraw_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: CancelPayload | None = None,
) -> LeaveRequestResponse:
    """Withdraw a pending request. Only the requester can withdraw."""
    leave_request = await _get_request_or_404(session, auth.organization_id, request_id, for_update=True)

    if leave_request.employee_id != auth.user_id:
        await _deny(auth, "Only the requester can withdraw a leave request")
    if not leave_request.can_be_withdrawn():
        raise StateConflictError(f"Only pending requests can be withdrawn, request is {leave_request.status}")

    await _release(
        session,
        leave_request,
        auth,
        LeaveStatus.WITHDRAWN,
        AuditAction.WITHDRAW,
        cancellation_reason=payload.reason if payload else None,
    )
    await session.commit()
    await session.refresh(leave_request)
    return _build_request_response(leave_request)


async def expire_stale_requests(
    session: AsyncSession,
    organization_id: uuid.UUID | None = None,
    today: date | None = None,
) -> int:
    """Expire pending requests whose start date has passed. Returns the number expired."""
    today = today or date.today()
    query = select(LeaveRequest).where(
        col(LeaveRequest.status) == LeaveStatus.PENDING.value,
        col(LeaveRequest.start_date) < today,
    )
    if organization_id is not None:
        query = query.where(col(LeaveRequest.organization_id) == organization_id)

    result = await session.execute(query.order_by(col(LeaveRequest.start_date)).with_for_update())
    stale = list(result.scalars().all())

    for leave_request in stale:
        await _release(session, leave_request, None, LeaveStatus.EXPIRED, AuditAction.EXPIRE)

    await session.commit()
    if stale:
        logger.info("Expired %d stale pending leave requests", len(stale))
    return len(stale)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Get a single request. Employees see their own, managers also see their direct reports'."""
    leave_request = await _get_request_or_404(session, auth.organization_id, request_id)
    if auth.role == Role.EMPLOYEE and leave_request.employee_id != auth.user_id:
        await _deny(auth, "Not authorized to view this leave request")
    if (
        auth.role == Role.MANAGER
        and leave_request.employee_id != auth.user_id
        and leave_request.employee_id not in await direct_report_ids(auth.organization_id, auth.user_id)
    ):
        await _deny(auth, "Managers can only view requests of their direct reports")
    return _build_request_response(leave_request)


async def list_leave_requests(
    session: AsyncSession,
    organization_id: uuid.UUID,
    status_filter: LeaveStatus | None = None,
    employee_id: uuid.UUID | None = None,
    leave_type_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
    employee_ids: list[uuid.UUID] | None = None,
) -> LeaveRequestListResponse:
    """List requests with optional filters, ordered by created_at DESC.

    ``start_date``/``end_date`` keep requests that share at least one day with the window.
    ``employee_ids`` restricts the result to those employees when given.
    """
    base_filters = [col(LeaveRequest.organization_id) == organization_id]

    if status_filter is not None:
        base_filters.append(col(LeaveRequest.status) == status_filter.value)
    if employee_id is not None:
        base_filters.append(col(LeaveRequest.employee_id) == employee_id)
    if employee_ids is not None:
        base_filters.append(col(LeaveRequest.employee_id).in_(employee_ids))
    if leave_type_id is not None:
        base_filters.append(col(LeaveRequest.leave_type_id) == leave_type_id)
    if start_date is not None:
        base_filters.append(col(LeaveRequest.end_date) >= start_date)
    if end_date is not None:
        base_filters.append(col(LeaveRequest.start_date) <= end_date)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*base_filters)
        .order_by(col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())

    return LeaveRequestListResponse(
        items=[_build_request_response(r) for r in requests],
        total=total,
    )


async def list_pending_approvals(
    session: AsyncSession,
    auth: AuthContext,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """Pending requests the caller can review, oldest first.

    HR sees the whole organization; managers see their direct reports.
    """
    if not auth.is_reviewer:
        await _deny(auth, "Only managers and HR can list pending approvals")

    base_filters = [
        col(LeaveRequest.organization_id) == auth.organization_id,
        col(LeaveRequest.status) == LeaveStatus.PENDING.value,
        col(LeaveRequest.employee_id) != auth.user_id,
    ]
    if auth.role == Role.MANAGER:
        report_ids = await direct_report_ids(auth.organization_id, auth.user_id)
        if not report_ids:
            return LeaveRequestListResponse(items=[], total=0)
        base_filters.append(col(LeaveRequest.employee_id).in_(report_ids))

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*base_filters)
        .order_by(col(LeaveRequest.applied_at))
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())
    return LeaveRequestListResponse(items=[_build_request_response(r) for r in requests], total=total)


async def check_availability(
    session: AsyncSession,
    auth: AuthContext,
    query: AvailabilityQuery,
) -> AvailabilityResponse:
    """Whether the employee could take the leave now, without reserving anything.

    Business-rule failures come back as ``available=False`` with a message.
    Unknown employees or leave types still raise 404.
    """
    if query.employee_id != auth.user_id and auth.role == Role.EMPLOYEE:
        await _deny(auth, "Employees can only check their own availability")

    try:
        employee = await _get_active_employee(auth.organization_id, query.employee_id)
        leave_type = await get_leave_type_or_404(session, auth.organization_id, query.leave_type_id)
        if not leave_type.is_applicable_to(employee.is_active):
            return AvailabilityResponse(available=False, message=f"Leave type {leave_type.code} is not active")
        requested = await calculate_leave_days(
            session, auth.organization_id, query.start_date, query.end_date, query.is_half_day
        )
    except ValidationError as exc:
        return AvailabilityResponse(available=False, message=exc.message)

    overlap = await _find_overlap(session, auth.organization_id, query.employee_id, query.start_date, query.end_date)
    if overlap is not None:
        return AvailabilityResponse(
            available=False,
            message="Overlaps with an existing leave request",
            requested_days=requested,
        )

    result = await session.execute(
        select(LeaveBalance).where(
            col(LeaveBalance.employee_id) == query.employee_id,
            col(LeaveBalance.leave_type_id) == leave_type.id,
            col(LeaveBalance.year) == query.start_date.year,
        )
    )
    balance = result.scalar_one_or_none()
    if balance is not None:
        remaining = balance.remaining_days
    else:
        remaining = Decimal(leave_type.max_days_per_year or 0)

    if remaining < requested and not leave_type.allow_negative_balance:
        return AvailabilityResponse(
            available=False,
            message=f"Insufficient leave balance: requested {requested} days, {remaining} remaining",
            requested_days=requested,
            remaining_days=remaining,
        )
    return AvailabilityResponse(
        available=True,
        message="Leave is available",
        requested_days=requested,
        remaining_days=remaining,
    )
