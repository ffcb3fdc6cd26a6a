# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit log entry."""

    id: uuid.UUID
    organization_id: uuid.UUID | None
    actor_id: uuid.UUID | None
    username: str | None
    user_role: str | None
    action: str
    entity_type: str | None
    entity_id: str | None
    entity_name: str | None
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    description: str | None
    severity: str
    module: str | None
    status: str
    error_message: str | None
    additional_data: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit log entries."""

    items: list[AuditLogEntryResponse]
    total: int


class AuditCleanupResponse(BaseModel):
    """Result of a retention cleanup run."""

    deleted: int
    retention_days: int
