from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import extract, func, select
from sqlmodel import col

from hrms.exceptions import EntityNotFoundError, StateConflictError
from hrms.models.enums import AuditAction, AuditEntityType
from hrms.models.holiday import Holiday
from hrms.schemas.holiday import HolidayListResponse, HolidayResponse
from hrms.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.holiday import CreateHolidayRequest


def build_holiday_response(holiday: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        organization_id=holiday.organization_id,
        date=holiday.date,
        name=holiday.name,
        is_optional=holiday.is_optional,
    )


async def create_holiday(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Create an organization holiday."""
    existing = await session.execute(
        select(col(Holiday.id)).where(
            col(Holiday.organization_id) == auth.organization_id,
            col(Holiday.date) == payload.date,
        )
    )
    if existing.first() is not None:
        raise StateConflictError("Holiday already exists for this date")

    holiday = Holiday(
        organization_id=auth.organization_id,
        date=payload.date,
        name=payload.name,
        is_optional=payload.is_optional,
    )
    session.add(holiday)
    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        entity_name=holiday.name,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(holiday),
    )

    await session.commit()
    await session.refresh(holiday)
    return build_holiday_response(holiday)


async def list_holidays(
    session: AsyncSession,
    organization_id: uuid.UUID,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HolidayListResponse:
    """List organization holidays with optional year filter."""
    base_filter = [col(Holiday.organization_id) == organization_id]

    if year is not None:
        base_filter.append(extract("year", col(Holiday.date)) == year)

    count_result = await session.execute(select(func.count()).select_from(Holiday).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Holiday).where(*base_filter).order_by(col(Holiday.date)).offset(offset).limit(limit)
    )
    holidays = list(result.scalars().all())

    return HolidayListResponse(
        items=[build_holiday_response(h) for h in holidays],
        total=total,
    )


async def get_holiday(
    session: AsyncSession,
    organization_id: uuid.UUID,
    holiday_id: uuid.UUID,
) -> Holiday:
    """Get a single holiday or raise 404."""
    result = await session.execute(
        select(Holiday).where(
            col(Holiday.id) == holiday_id,
            col(Holiday.organization_id) == organization_id,
        )
    )
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise EntityNotFoundError("Holiday", holiday_id)
    return holiday


async def delete_holiday(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Delete an organization holiday."""
    holiday = await get_holiday(session, auth.organization_id, holiday_id)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        entity_name=holiday.name,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(holiday),
    )

    await session.delete(holiday)
    await session.commit()


async def fetch_holiday_dates(
    session: AsyncSession,
    organization_id: uuid.UUID,
    start_date: date,
    end_date: date,
    mandatory_only: bool = True,
) -> set[date]:
    """Fetch holiday dates in the inclusive range."""
    query = select(col(Holiday.date)).where(
        col(Holiday.organization_id) == organization_id,
        col(Holiday.date) >= start_date,
        col(Holiday.date) <= end_date,
    )
    if mandatory_only:
        query = query.where(col(Holiday.is_optional).is_(False))
    result = await session.execute(query)
    return {row[0] for row in result.all()}


async def is_holiday(session: AsyncSession, organization_id: uuid.UUID, day: date) -> bool:
    """Whether ``day`` is a mandatory holiday for the organization."""
    return day in await fetch_holiday_dates(session, organization_id, day, day)
