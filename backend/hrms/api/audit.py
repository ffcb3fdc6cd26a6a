# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from hrms.api.deps import AdminDep, HRDep, validate_organization_scope
from hrms.config import get_settings
from hrms.db import SessionDep
from hrms.schemas.audit import AuditCleanupResponse, AuditLogListResponse
from hrms.services import audit as audit_service

audit_router = APIRouter(
    prefix="/organizations/{organization_id}/audit-logs",
    tags=["audit"],
    dependencies=[Depends(validate_organization_scope)],
)


@audit_router.get("", response_model=AuditLogListResponse)
async def query_audit_logs(
    session: SessionDep,
    auth: HRDep,
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    action: str | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    module: str | None = Query(default=None),
    severity: str | None = Query(default=None),
    start_at: datetime | None = Query(default=None),
    end_at: datetime | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query audit log entries with optional filters (HR only)."""
    return await audit_service.query_audit_logs(
        session,
        auth.organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        module=module,
        severity=severity,
        start_at=start_at,
        end_at=end_at,
        offset=offset,
        limit=limit,
    )


@audit_router.get("/security-events", response_model=AuditLogListResponse)
async def list_security_events(
    session: SessionDep,
    auth: HRDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Access violations and other security events (HR only)."""
    return await audit_service.list_security_events(session, auth.organization_id, offset, limit)


@audit_router.get("/entities/{entity_type}/{entity_id}", response_model=AuditLogListResponse)
async def get_entity_history(
    entity_type: str,
    entity_id: str,
    session: SessionDep,
    auth: HRDep,
) -> AuditLogListResponse:
    """Full audit history of one entity (HR only)."""
    return await audit_service.get_entity_history(session, auth.organization_id, entity_type, entity_id)


@audit_router.post("/cleanup", response_model=AuditCleanupResponse)
async def cleanup_audit_logs(
    session: SessionDep,
    auth: AdminDep,
    retention_days: int | None = Query(default=None, ge=1),
) -> AuditCleanupResponse:
    """Delete audit entries older than the retention window (admin only)."""
    days = retention_days or get_settings().audit_retention_days
    deleted = await audit_service.cleanup_old_audit_logs(session, days, auth=auth)
    return AuditCleanupResponse(deleted=deleted, retention_days=days)
