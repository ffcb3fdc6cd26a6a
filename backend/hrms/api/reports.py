# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from hrms.api.deps import AuthDep, HRDep, validate_organization_scope
from hrms.db import SessionDep
from hrms.schemas.report import LeaveCalendarResponse, LeaveStatisticsResponse
from hrms.services import report as report_service

reports_router = APIRouter(
    prefix="/organizations/{organization_id}/reports",
    tags=["reports"],
    dependencies=[Depends(validate_organization_scope)],
)


@reports_router.get(
    "/leave-statistics",
    response_model=LeaveStatisticsResponse,
)
async def get_leave_statistics(
    session: SessionDep,
    auth: HRDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> LeaveStatisticsResponse:
    """Leave request counts per status for a year (HR only)."""
    return await report_service.get_leave_statistics(session, auth.organization_id, year or date.today().year)


@reports_router.get(
    "/leave-calendar",
    response_model=LeaveCalendarResponse,
)
async def get_leave_calendar(
    session: SessionDep,
    auth: AuthDep,
    start_date: date = Query(),
    end_date: date = Query(),
) -> LeaveCalendarResponse:
    """Pending and approved leave overlapping a date range."""
    return await report_service.get_leave_calendar(session, auth.organization_id, start_date, end_date)
