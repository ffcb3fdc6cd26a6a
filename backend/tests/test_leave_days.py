"""Tests for the leave day calculator (weekend and holiday awareness)."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from hrms.exceptions import ValidationError
from hrms.models.holiday import Holiday
from hrms.services.leave_days import calculate_leave_days, count_working_days, validate_date_order

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

ORGANIZATION_ID = uuid.uuid4()


async def _add_holiday(session: AsyncSession, dt: date, name: str = "Holiday", is_optional: bool = False) -> None:
    """Insert an organization holiday."""
    session.add(Holiday(organization_id=ORGANIZATION_ID, date=dt, name=name, is_optional=is_optional))
    await session.flush()


# ---------------------------------------------------------------------------
# Pure counting
# ---------------------------------------------------------------------------


def test_count_working_days_skips_weekends() -> None:
    # 2030-03-04 is a Monday; two full weeks.
    assert count_working_days(date(2030, 3, 4), date(2030, 3, 17), set()) == 10


def test_count_working_days_skips_holidays() -> None:
    holidays = {date(2030, 3, 6)}
    assert count_working_days(date(2030, 3, 4), date(2030, 3, 8), holidays) == 4


def test_count_working_days_weekend_only() -> None:
    assert count_working_days(date(2030, 3, 9), date(2030, 3, 10), set()) == 0


def test_validate_date_order_rejects_inverted_range() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_date_order(date(2030, 3, 8), date(2030, 3, 4))
    assert exc_info.value.status_code == 400
    assert "start_date" in (exc_info.value.field_errors or {})


def test_validate_date_order_accepts_single_day() -> None:
    validate_date_order(date(2030, 3, 4), date(2030, 3, 4))


# ---------------------------------------------------------------------------
# Holiday-aware calculation
# ---------------------------------------------------------------------------


async def test_full_week(db_session: AsyncSession) -> None:
    result = await calculate_leave_days(db_session, ORGANIZATION_ID, date(2030, 3, 4), date(2030, 3, 8))
    assert result == Decimal("5")


async def test_mandatory_holiday_not_counted(db_session: AsyncSession) -> None:
    await _add_holiday(db_session, date(2030, 3, 6), "Founders Day")
    result = await calculate_leave_days(db_session, ORGANIZATION_ID, date(2030, 3, 4), date(2030, 3, 8))
    assert result == Decimal("4")


async def test_optional_holiday_still_counted(db_session: AsyncSession) -> None:
    await _add_holiday(db_session, date(2030, 3, 6), "Floating Day", is_optional=True)
    result = await calculate_leave_days(db_session, ORGANIZATION_ID, date(2030, 3, 4), date(2030, 3, 8))
    assert result == Decimal("5")


async def test_other_organization_holiday_ignored(db_session: AsyncSession) -> None:
    db_session.add(Holiday(organization_id=uuid.uuid4(), date=date(2030, 3, 6), name="Elsewhere"))
    await db_session.flush()
    result = await calculate_leave_days(db_session, ORGANIZATION_ID, date(2030, 3, 4), date(2030, 3, 8))
    assert result == Decimal("5")


async def test_half_day(db_session: AsyncSession) -> None:
    result = await calculate_leave_days(
        db_session, ORGANIZATION_ID, date(2030, 3, 4), date(2030, 3, 4), is_half_day=True
    )
    assert result == Decimal("0.5")


async def test_half_day_must_be_single_date(db_session: AsyncSession) -> None:
    with pytest.raises(ValidationError):
        await calculate_leave_days(db_session, ORGANIZATION_ID, date(2030, 3, 4), date(2030, 3, 5), is_half_day=True)


async def test_half_day_on_weekend_rejected(db_session: AsyncSession) -> None:
    with pytest.raises(ValidationError):
        await calculate_leave_days(db_session, ORGANIZATION_ID, date(2030, 3, 9), date(2030, 3, 9), is_half_day=True)


async def test_weekend_only_range_rejected(db_session: AsyncSession) -> None:
    with pytest.raises(ValidationError, match="no working days"):
        await calculate_leave_days(db_session, ORGANIZATION_ID, date(2030, 3, 9), date(2030, 3, 10))


async def test_inverted_range_rejected(db_session: AsyncSession) -> None:
    with pytest.raises(ValidationError, match="Start date cannot be after end date"):
        await calculate_leave_days(db_session, ORGANIZATION_ID, date(2030, 3, 8), date(2030, 3, 4))
