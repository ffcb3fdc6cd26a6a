from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import extract, func, select
from sqlmodel import col

from hrms.models.enums import ACTIVE_STATUSES, LeaveStatus
from hrms.models.leave_type import LeaveType
from hrms.models.request import LeaveRequest
from hrms.schemas.report import LeaveCalendarEntry, LeaveCalendarResponse, LeaveStatisticsResponse
from hrms.services.employee import get_employee_directory
from hrms.services.leave_days import validate_date_order

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession


async def get_leave_statistics(
    session: AsyncSession,
    organization_id: uuid.UUID,
    year: int,
) -> LeaveStatisticsResponse:
    """Count requests per status for leave starting in ``year`` and sum approved days."""
    result = await session.execute(
        select(
            col(LeaveRequest.status),
            func.count().label("request_count"),
            func.coalesce(func.sum(col(LeaveRequest.total_days)), 0).label("days"),
        )
        .where(
            col(LeaveRequest.organization_id) == organization_id,
            extract("year", col(LeaveRequest.start_date)) == year,
        )
        .group_by(col(LeaveRequest.status))
    )

    counts: dict[str, int] = {}
    approved_days = Decimal(0)
    for status, request_count, days in result.all():
        counts[status] = request_count
        if status == LeaveStatus.APPROVED:
            approved_days = Decimal(str(days))

    return LeaveStatisticsResponse(
        year=year,
        total_requests=sum(counts.values()),
        pending_requests=counts.get(LeaveStatus.PENDING.value, 0),
        approved_requests=counts.get(LeaveStatus.APPROVED.value, 0),
        rejected_requests=counts.get(LeaveStatus.REJECTED.value, 0),
        cancelled_requests=counts.get(LeaveStatus.CANCELLED.value, 0),
        withdrawn_requests=counts.get(LeaveStatus.WITHDRAWN.value, 0),
        expired_requests=counts.get(LeaveStatus.EXPIRED.value, 0),
        approved_days=approved_days,
    )


async def get_leave_calendar(
    session: AsyncSession,
    organization_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> LeaveCalendarResponse:
    """Pending and approved leave that shares at least one day with the range."""
    validate_date_order(start_date, end_date)

    result = await session.execute(
        select(LeaveRequest, col(LeaveType.code))
        .join(LeaveType, col(LeaveType.id) == col(LeaveRequest.leave_type_id))
        .where(
            col(LeaveRequest.organization_id) == organization_id,
            col(LeaveRequest.status).in_([s.value for s in ACTIVE_STATUSES]),
            col(LeaveRequest.start_date) <= end_date,
            col(LeaveRequest.end_date) >= start_date,
        )
        .order_by(col(LeaveRequest.start_date), col(LeaveRequest.employee_id))
    )
    rows = list(result.all())

    employees = await get_employee_directory().list_employees(organization_id)
    names = {e.id: e.full_name for e in employees}

    items = [
        LeaveCalendarEntry(
            request_id=request.id,
            employee_id=request.employee_id,
            employee_name=names.get(request.employee_id),
            leave_type_id=request.leave_type_id,
            leave_type_code=code,
            start_date=request.start_date,
            end_date=request.end_date,
            total_days=request.total_days,
            status=request.status,
        )
        for request, code in rows
    ]
    return LeaveCalendarResponse(start_date=start_date, end_date=end_date, items=items)
