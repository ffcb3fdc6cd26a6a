# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from hrms.exceptions import ValidationError
from hrms.services.holiday import fetch_holiday_dates

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

HALF_DAY = Decimal("0.5")
_SATURDAY = 5


def validate_date_order(start_date: date, end_date: date) -> None:
    """Raise a validation error if the range is inverted."""
    if start_date > end_date:
        raise ValidationError(
            "Start date cannot be after end date",
            field_errors={"start_date": "must be on or before end_date"},
        )


def count_working_days(start_date: date, end_date: date, holidays: set[date]) -> int:
    """Count weekdays in the inclusive range that are not holidays."""
    total = 0
    current = start_date
    one_day = timedelta(days=1)
    while current <= end_date:
        if current.weekday() < _SATURDAY and current not in holidays:
            total += 1
        current += one_day
    return total


def validate_half_day(start_date: date, end_date: date, is_half_day: bool) -> None:
    if is_half_day and start_date != end_date:
        raise ValidationError(
            "A half-day leave must start and end on the same date",
            field_errors={"is_half_day": "requires start_date == end_date"},
        )


async def calculate_leave_days(
    session: AsyncSession,
    organization_id: uuid.UUID,
    start_date: date,
    end_date: date,
    is_half_day: bool = False,
) -> Decimal:
    """Calculate the number of leave days a date range consumes.

    Weekends (Sat/Sun) and the organization's mandatory holidays are not
    counted. A half day must cover a single working date and counts 0.5.
    """
    validate_date_order(start_date, end_date)
    validate_half_day(start_date, end_date, is_half_day)

    holidays = await fetch_holiday_dates(session, organization_id, start_date, end_date)
    working_days = count_working_days(start_date, end_date, holidays)

    if working_days <= 0:
        raise ValidationError("Leave covers no working days after excluding weekends and holidays")

    if is_half_day:
        return HALF_DAY
    return Decimal(working_days)
