# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from hrms.api.deps import AuthDep, HRDep, validate_organization_scope
from hrms.db import SessionDep
from hrms.schemas.holiday import CreateHolidayRequest, HolidayListResponse, HolidayResponse
from hrms.services import holiday as holiday_service

holidays_router = APIRouter(
    prefix="/organizations/{organization_id}/holidays",
    tags=["holidays"],
    dependencies=[Depends(validate_organization_scope)],
)


@holidays_router.post(
    "",
    response_model=HolidayResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_holiday(
    payload: CreateHolidayRequest,
    session: SessionDep,
    auth: HRDep,
) -> HolidayResponse:
    """Create an organization holiday (HR only)."""
    return await holiday_service.create_holiday(session, auth, payload)


@holidays_router.get(
    "",
    response_model=HolidayListResponse,
)
async def list_holidays(
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HolidayListResponse:
    """List organization holidays with optional year filter."""
    return await holiday_service.list_holidays(session, auth.organization_id, year, offset, limit)


@holidays_router.get(
    "/{holiday_id}",
    response_model=HolidayResponse,
)
async def get_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> HolidayResponse:
    """Get a single organization holiday."""
    holiday = await holiday_service.get_holiday(session, auth.organization_id, holiday_id)
    return holiday_service.build_holiday_response(holiday)


@holidays_router.delete(
    "/{holiday_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
) -> None:
    """Delete an organization holiday (HR only)."""
    await holiday_service.delete_holiday(session, auth, holiday_id)
