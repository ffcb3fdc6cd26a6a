# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import UUIDBase


class Holiday(UUIDBase, table=True):
    """An organization holiday. Mandatory holidays are excluded from leave day counts."""

    __tablename__ = "holiday"
    __table_args__ = (sa.UniqueConstraint("organization_id", "date", name="uq_holiday_org_date"),)

    organization_id: uuid.UUID = Field(index=True)
    date: datetime.date
    name: str = Field(max_length=255)
    is_optional: bool = False
