# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import UUIDBase, now_utc
from hrms.models.enums import AuditSeverity, AuditStatus


class AuditLog(UUIDBase, table=True):
    """Append-only record of one audited action. Entities are referenced by type and id, never by FK."""

    __tablename__ = "audit_log"
    __table_args__ = (
        sa.Index("ix_audit_entity", "entity_type", "entity_id"),
        sa.Index("ix_audit_org_module", "organization_id", "module"),
    )

    organization_id: uuid.UUID | None = Field(default=None, index=True)
    actor_id: uuid.UUID | None = Field(default=None, index=True)
    username: str | None = Field(default=None, max_length=255)
    user_role: str | None = Field(default=None, max_length=100)
    action: str = Field(max_length=100, index=True)
    entity_type: str | None = Field(default=None, max_length=100)
    entity_id: str | None = Field(default=None, max_length=100)
    entity_name: str | None = Field(default=None, max_length=255)
    before_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    after_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    description: str | None = Field(default=None, max_length=1000)
    severity: str = Field(default=AuditSeverity.LOW, max_length=20)
    module: str | None = Field(default=None, max_length=100)
    status: str = Field(default=AuditStatus.SUCCESS, max_length=20)
    error_message: str | None = Field(default=None, max_length=1000)
    additional_data: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    ip_address: str | None = Field(default=None, max_length=100)
    user_agent: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(
        default_factory=now_utc,
        index=True,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
