"""Audit trail: in-transaction change records, a best-effort background logger, and queries."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlmodel import col

from hrms.config import get_settings
from hrms.db import get_session_factory
from hrms.models.audit import AuditLog
from hrms.models.base import now_utc
from hrms.models.enums import AuditAction, AuditEntityType, AuditModule, AuditSeverity, AuditStatus
from hrms.schemas.audit import AuditLogEntryResponse, AuditLogListResponse

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractAsyncContextManager

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from hrms.schemas.auth import AuthContext

    SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

logger = logging.getLogger(__name__)

_MEDIUM_SEVERITY_ENTITIES = {"employee", "user", "payrollrun"}

# Keyword -> module, checked in order against the lower-cased entity type.
_MODULE_KEYWORDS: list[tuple[tuple[str, ...], AuditModule]] = [
    (("employee", "department"), AuditModule.EMPLOYEE),
    (("payroll", "salary"), AuditModule.PAYROLL),
    (("leave", "attendance", "holiday"), AuditModule.LEAVE),
    (("job", "candidate", "application", "interview"), AuditModule.RECRUITMENT),
    (("user", "role", "permission", "security"), AuditModule.SECURITY),
    (("compliance",), AuditModule.COMPLIANCE),
    (("system",), AuditModule.SYSTEM),
]


# ---------------------------------------------------------------------------
# Serialization and classification helpers
# ---------------------------------------------------------------------------


def model_to_audit_dict(model: SQLModel | BaseModel) -> dict[str, Any]:
    """Serialize a model instance to a JSON-safe dict for audit logging."""
    data: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if isinstance(value, uuid.UUID):
            data[key] = str(value)
        elif isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        elif isinstance(value, Decimal):
            data[key] = str(value)
        else:
            data[key] = value
    return data


def to_audit_json(value: object) -> dict[str, Any] | None:
    """Best-effort conversion of an arbitrary value into a JSON object for the audit log."""
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return model_to_audit_dict(value)
    encoded = jsonable_encoder(value, custom_encoder={Decimal: str})
    if isinstance(encoded, dict):
        return encoded
    return {"value": encoded}


def determine_severity(action: str, entity_type: str | None) -> AuditSeverity:
    """Deletes are HIGH, changes to people and payroll are MEDIUM, everything else LOW."""
    if action.upper() == AuditAction.DELETE:
        return AuditSeverity.HIGH
    if entity_type is not None and entity_type.lower() in _MEDIUM_SEVERITY_ENTITIES:
        return AuditSeverity.MEDIUM
    return AuditSeverity.LOW


def determine_module(entity_type: str | None) -> AuditModule:
    """Map an entity type onto the functional module it belongs to."""
    if entity_type is None:
        return AuditModule.UNKNOWN
    lowered = entity_type.lower()
    for keywords, module in _MODULE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return module
    return AuditModule.GENERAL


def _truncate(value: str | None, limit: int) -> str | None:
    if value is None or len(value) <= limit:
        return value
    return value[: limit - 3] + "..."


def _actor_fields(auth: AuthContext | None) -> dict[str, Any]:
    if auth is None:
        return {}
    return {
        "organization_id": auth.organization_id,
        "actor_id": auth.user_id,
        "username": auth.username,
        "user_role": auth.role.value,
        "ip_address": auth.ip_address,
        "user_agent": _truncate(auth.user_agent, 500),
    }


# ---------------------------------------------------------------------------
# In-transaction audit records
# ---------------------------------------------------------------------------


async def write_audit_log(
    session: AsyncSession,
    *,
    auth: AuthContext | None,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID | str | None,
    action: AuditAction,
    entity_name: str | None = None,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
    description: str | None = None,
    severity: AuditSeverity | None = None,
    organization_id: uuid.UUID | None = None,
) -> AuditLog:
    """Write an immutable audit log entry within the caller's transaction."""
    entry = AuditLog(
        **_actor_fields(auth),
        action=action.value,
        entity_type=entity_type.value,
        entity_id=str(entity_id) if entity_id is not None else None,
        entity_name=_truncate(entity_name, 255),
        before_json=before_json,
        after_json=after_json,
        description=_truncate(description, 1000),
        severity=(severity or determine_severity(action, entity_type)).value,
        module=determine_module(entity_type).value,
        status=AuditStatus.SUCCESS.value,
    )
    if organization_id is not None:
        entry.organization_id = organization_id
    session.add(entry)
    return entry


# ---------------------------------------------------------------------------
# Best-effort audit logger
# ---------------------------------------------------------------------------


class AuditLogger:
    """Writes audit records in their own session, by default on background tasks.

    Every public method swallows its own failures: auditing must never break the
    operation it describes. Background writes are not ordered with respect to the
    caller's commit and are lost if the process dies before they run.
    """

    def __init__(self, session_factory: SessionFactory | None = None, *, background: bool | None = None) -> None:
        self._session_factory = session_factory
        self._background = get_settings().audit_background if background is None else background
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def log_data_change(
        self,
        action: str,
        entity_type: str,
        entity_id: str | None,
        entity_name: str | None,
        old_values: object = None,
        new_values: object = None,
        *,
        auth: AuthContext | None = None,
        severity: str | None = None,
        additional_data: dict[str, Any] | None = None,
    ) -> None:
        """Record a create/update/delete of a domain entity."""
        try:
            entry = AuditLog(
                **_actor_fields(auth),
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                entity_name=_truncate(entity_name, 255),
                before_json=to_audit_json(old_values),
                after_json=to_audit_json(new_values),
                severity=severity or determine_severity(action, entity_type).value,
                module=determine_module(entity_type).value,
                status=AuditStatus.SUCCESS.value,
                additional_data=to_audit_json(additional_data),
            )
        except Exception as exc:
            logger.warning("Failed to build data change audit record for %s %s: %s", action, entity_type, exc)
            return
        await self._emit(entry)

    async def log_system_event(
        self,
        action: str,
        description: str,
        severity: str,
        additional_data: dict[str, Any] | None = None,
        *,
        auth: AuthContext | None = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        entity_type: str | None = None,
        entity_id: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """Record a system event (jobs, failures, non-modifying operations)."""
        try:
            entry = AuditLog(
                **_actor_fields(auth),
                action=action,
                entity_type=entity_type or AuditEntityType.SYSTEM.value,
                entity_id=entity_id,
                description=_truncate(description, 1000),
                severity=severity,
                module=AuditModule.SYSTEM.value,
                status=status.value,
                error_message=_truncate(error_message, 1000),
                additional_data=to_audit_json(additional_data),
            )
        except Exception as exc:
            logger.warning("Failed to build system audit record for %s: %s", action, exc)
            return
        await self._emit(entry)

    async def log_security_event(
        self,
        action: str,
        description: str,
        severity: str,
        *,
        auth: AuthContext | None = None,
    ) -> None:
        """Record an access violation or other security-relevant failure."""
        try:
            entry = AuditLog(
                **_actor_fields(auth),
                action=action,
                entity_type=AuditEntityType.SECURITY.value,
                description=_truncate(description, 1000),
                severity=severity,
                module=AuditModule.SECURITY.value,
                status=AuditStatus.FAILURE.value,
            )
            if entry.username is None:
                entry.username = "anonymous"
        except Exception as exc:
            logger.warning("Failed to build security audit record for %s: %s", action, exc)
            return
        await self._emit(entry)

    async def log_authentication(
        self,
        username: str,
        action: str,
        success: bool,
        error_message: str | None = None,
        *,
        auth: AuthContext | None = None,
    ) -> None:
        """Record a login attempt."""
        try:
            entry = AuditLog(
                **_actor_fields(auth),
                action=action,
                entity_type=AuditEntityType.USER.value,
                severity=(AuditSeverity.LOW if success else AuditSeverity.MEDIUM).value,
                module=AuditModule.AUTHENTICATION.value,
                status=(AuditStatus.SUCCESS if success else AuditStatus.FAILURE).value,
                error_message=_truncate(error_message, 1000),
            )
            entry.username = username
        except Exception as exc:
            logger.warning("Failed to build authentication audit record for %s: %s", username, exc)
            return
        await self._emit(entry)

    async def log_compliance_event(
        self,
        action: str,
        rule_code: str,
        violation_type: str,
        entity_type: str,
        entity_id: str | None,
        description: str,
        *,
        auth: AuthContext | None = None,
    ) -> None:
        """Record a policy rule violation."""
        try:
            entry = AuditLog(
                **_actor_fields(auth),
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                description=_truncate(description, 1000),
                severity=AuditSeverity.HIGH.value,
                module=AuditModule.COMPLIANCE.value,
                status=AuditStatus.SUCCESS.value,
                additional_data={"rule_code": rule_code, "violation_type": violation_type},
            )
        except Exception as exc:
            logger.warning("Failed to build compliance audit record for %s: %s", rule_code, exc)
            return
        await self._emit(entry)

    async def drain(self) -> None:
        """Wait for every in-flight background write to finish."""
        while self._tasks:
            tasks = list(self._tasks)
            await asyncio.gather(*tasks, return_exceptions=True)
            self._tasks.difference_update(tasks)

    async def _emit(self, entry: AuditLog) -> None:
        if not self._background:
            await self._persist(entry)
            return
        try:
            task = asyncio.get_running_loop().create_task(self._persist(entry))
        except RuntimeError as exc:
            logger.warning("No running event loop for audit record %s: %s", entry.action, exc)
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _persist(self, entry: AuditLog) -> None:
        factory = self._session_factory or get_session_factory()
        try:
            async with factory() as session:
                session.add(entry)
                await session.commit()
        except Exception as exc:
            logger.warning("Failed to persist audit record %s: %s", entry.action, exc)


_audit_logger: AuditLogger | None = None


def get_audit_logger() -> AuditLogger:
    """Return the process-wide audit logger, creating it on first use."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def set_audit_logger(audit_logger: AuditLogger | None) -> None:
    """Override the audit logger (for testing or production wiring)."""
    global _audit_logger
    _audit_logger = audit_logger


async def record_access_denied(auth: AuthContext | None, description: str) -> None:
    """Record a refused operation as a security event."""
    await get_audit_logger().log_security_event(
        AuditAction.ACCESS_DENIED.value,
        description,
        AuditSeverity.MEDIUM.value,
        auth=auth,
    )


# ---------------------------------------------------------------------------
# Queries and retention
# ---------------------------------------------------------------------------


def _build_entry_response(entry: AuditLog) -> AuditLogEntryResponse:
    return AuditLogEntryResponse(
        id=entry.id,
        organization_id=entry.organization_id,
        actor_id=entry.actor_id,
        username=entry.username,
        user_role=entry.user_role,
        action=entry.action,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        entity_name=entry.entity_name,
        before_json=entry.before_json,
        after_json=entry.after_json,
        description=entry.description,
        severity=entry.severity,
        module=entry.module,
        status=entry.status,
        error_message=entry.error_message,
        additional_data=entry.additional_data,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        created_at=entry.created_at,
    )


async def query_audit_logs(
    session: AsyncSession,
    organization_id: uuid.UUID,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: str | None = None,
    actor_id: uuid.UUID | None = None,
    module: str | None = None,
    severity: str | None = None,
    start_at: datetime | None = None,
    end_at: datetime | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters, newest first."""
    filters = [col(AuditLog.organization_id) == organization_id]

    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if entity_id is not None:
        filters.append(col(AuditLog.entity_id) == entity_id)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_id is not None:
        filters.append(col(AuditLog.actor_id) == actor_id)
    if module is not None:
        filters.append(col(AuditLog.module) == module)
    if severity is not None:
        filters.append(col(AuditLog.severity) == severity)
    if start_at is not None:
        filters.append(col(AuditLog.created_at) >= start_at)
    if end_at is not None:
        filters.append(col(AuditLog.created_at) <= end_at)

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(items=[_build_entry_response(e) for e in entries], total=total)


async def get_entity_history(
    session: AsyncSession,
    organization_id: uuid.UUID,
    entity_type: str,
    entity_id: str,
) -> AuditLogListResponse:
    """Every audit entry recorded against one entity, newest first."""
    return await query_audit_logs(session, organization_id, entity_type=entity_type, entity_id=entity_id, limit=1000)


async def list_security_events(
    session: AsyncSession,
    organization_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    return await query_audit_logs(
        session, organization_id, module=AuditModule.SECURITY.value, offset=offset, limit=limit
    )


async def cleanup_old_audit_logs(
    session: AsyncSession,
    retention_days: int | None = None,
    now: datetime | None = None,
    auth: AuthContext | None = None,
) -> int:
    """Delete audit entries older than the retention window. Returns the number deleted."""
    if retention_days is None:
        retention_days = get_settings().audit_retention_days
    cutoff = (now or now_utc()) - timedelta(days=retention_days)
    result = await session.execute(delete(AuditLog).where(col(AuditLog.created_at) < cutoff))
    await session.commit()
    deleted = result.rowcount or 0  # ty: ignore[unresolved-attribute]
    logger.info("Cleaned up %d audit log entries older than %s", deleted, cutoff.isoformat())
    await get_audit_logger().log_system_event(
        AuditAction.CLEANUP.value,
        f"Deleted {deleted} audit log entries older than {retention_days} days",
        AuditSeverity.MEDIUM.value,
        {"deleted": deleted, "retention_days": retention_days, "cutoff": cutoff},
        auth=auth,
    )
    return deleted
