"""Tests for the audit trail: classification, writers, queries, retention and access checks."""

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select
from sqlmodel import col

from hrms.models.audit import AuditLog
from hrms.models.balance import LeaveBalance
from hrms.models.base import now_utc
from hrms.models.enums import AuditAction, AuditEntityType, AuditModule, AuditSeverity, Role
from hrms.schemas.auth import AuthContext
from hrms.services.audit import (
    AuditLogger,
    cleanup_old_audit_logs,
    determine_module,
    determine_severity,
    get_entity_history,
    list_security_events,
    model_to_audit_dict,
    query_audit_logs,
    record_access_denied,
    to_audit_json,
    write_audit_log,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractAsyncContextManager

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

ORGANIZATION_ID = uuid.uuid4()
OTHER_ORGANIZATION_ID = uuid.uuid4()
HR_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()

HR_AUTH = AuthContext(
    organization_id=ORGANIZATION_ID,
    user_id=HR_ID,
    role=Role.HR_MANAGER,
    username="hr.jane",
    ip_address="10.0.0.1",
    user_agent="pytest",
)
HR_HEADERS = {
    "X-Organization-Id": str(ORGANIZATION_ID),
    "X-User-Id": str(HR_ID),
    "X-Role": "hr_manager",
}
ADMIN_HEADERS = {
    "X-Organization-Id": str(ORGANIZATION_ID),
    "X-User-Id": str(ADMIN_ID),
    "X-Role": "admin",
}
AUDIT_URL = f"/organizations/{ORGANIZATION_ID}/audit-logs"


async def _entries(session: AsyncSession, action: str) -> list[AuditLog]:
    result = await session.execute(select(AuditLog).where(col(AuditLog.action) == action))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Classification and serialization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("action", "entity_type", "expected"),
    [
        ("DELETE", "LeaveType", AuditSeverity.HIGH),
        ("delete", None, AuditSeverity.HIGH),
        ("UPDATE", "Employee", AuditSeverity.MEDIUM),
        ("CREATE", "User", AuditSeverity.MEDIUM),
        ("UPDATE", "LeaveType", AuditSeverity.LOW),
        ("APPROVE", None, AuditSeverity.LOW),
    ],
)
def test_determine_severity(action: str, entity_type: str | None, expected: AuditSeverity) -> None:
    assert determine_severity(action, entity_type) == expected


@pytest.mark.parametrize(
    ("entity_type", "expected"),
    [
        ("LeaveRequest", AuditModule.LEAVE),
        ("Holiday", AuditModule.LEAVE),
        ("Employee", AuditModule.EMPLOYEE),
        ("PayrollRun", AuditModule.PAYROLL),
        ("Security", AuditModule.SECURITY),
        ("System", AuditModule.SYSTEM),
        ("Widget", AuditModule.GENERAL),
        (None, AuditModule.UNKNOWN),
    ],
)
def test_determine_module(entity_type: str | None, expected: AuditModule) -> None:
    assert determine_module(entity_type) == expected


def test_model_to_audit_dict_is_json_safe() -> None:
    balance = LeaveBalance(
        organization_id=ORGANIZATION_ID,
        employee_id=HR_ID,
        leave_type_id=uuid.uuid4(),
        year=2030,
        allocated_days=Decimal("12.5"),
    )
    data = model_to_audit_dict(balance)
    assert data["organization_id"] == str(ORGANIZATION_ID)
    assert data["allocated_days"] == "12.5"
    assert isinstance(data["updated_at"], str)


def test_to_audit_json() -> None:
    assert to_audit_json(None) is None
    assert to_audit_json({"days": Decimal("1.5")}) == {"days": "1.5"}
    assert to_audit_json([1, 2]) == {"value": [1, 2]}


# ---------------------------------------------------------------------------
# write_audit_log
# ---------------------------------------------------------------------------


async def test_write_audit_log_captures_actor(db_session: AsyncSession) -> None:
    entity_id = uuid.uuid4()
    entry = await write_audit_log(
        db_session,
        auth=HR_AUTH,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=entity_id,
        action=AuditAction.APPROVE,
        before_json={"status": "PENDING"},
        after_json={"status": "APPROVED"},
    )
    await db_session.flush()

    assert entry.organization_id == ORGANIZATION_ID
    assert entry.actor_id == HR_ID
    assert entry.username == "hr.jane"
    assert entry.user_role == "hr_manager"
    assert entry.ip_address == "10.0.0.1"
    assert entry.user_agent == "pytest"
    assert entry.entity_id == str(entity_id)
    assert entry.severity == "LOW"
    assert entry.module == "LEAVE"
    assert entry.status == "SUCCESS"


async def test_write_audit_log_without_actor(db_session: AsyncSession) -> None:
    entry = await write_audit_log(
        db_session,
        auth=None,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=None,
        action=AuditAction.EXPIRE,
        description="x" * 2000,
        organization_id=ORGANIZATION_ID,
    )
    assert entry.actor_id is None
    assert entry.organization_id == ORGANIZATION_ID
    assert entry.description is not None
    assert len(entry.description) == 1000
    assert entry.description.endswith("...")


# ---------------------------------------------------------------------------
# AuditLogger
# ---------------------------------------------------------------------------


async def test_logger_writes_data_change(db_session: AsyncSession, audit_logger: AuditLogger) -> None:
    await audit_logger.log_data_change(
        "DELETE", "Holiday", "h-1", "New Year", {"name": "New Year"}, None, auth=HR_AUTH
    )
    [entry] = await _entries(db_session, "DELETE")
    assert entry.severity == "HIGH"
    assert entry.module == "LEAVE"
    assert entry.before_json == {"name": "New Year"}
    assert entry.after_json is None
    assert entry.actor_id == HR_ID


async def test_logger_security_event_defaults_to_anonymous(
    db_session: AsyncSession, audit_logger: AuditLogger
) -> None:
    await audit_logger.log_security_event("ACCESS_DENIED", "No token", "MEDIUM")
    [entry] = await _entries(db_session, "ACCESS_DENIED")
    assert entry.username == "anonymous"
    assert entry.status == "FAILURE"
    assert entry.module == "SECURITY"


async def test_logger_authentication_events(db_session: AsyncSession, audit_logger: AuditLogger) -> None:
    await audit_logger.log_authentication("ada", "LOGIN", True)
    await audit_logger.log_authentication("ada", "FAILED_LOGIN", False, "bad password")

    [ok] = await _entries(db_session, "LOGIN")
    [failed] = await _entries(db_session, "FAILED_LOGIN")
    assert ok.severity == "LOW"
    assert ok.status == "SUCCESS"
    assert failed.severity == "MEDIUM"
    assert failed.status == "FAILURE"
    assert failed.error_message == "bad password"
    assert failed.module == "AUTHENTICATION"


async def test_background_logger_drains(
    db_session: AsyncSession,
    session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
) -> None:
    background_logger = AuditLogger(session_factory, background=True)
    await background_logger.log_system_event("CLEANUP", "Nightly cleanup", "LOW", {"deleted": 3})
    assert background_logger.pending == 1

    await background_logger.drain()
    assert background_logger.pending == 0

    [entry] = await _entries(db_session, "CLEANUP")
    assert entry.additional_data == {"deleted": 3}
    assert entry.entity_type == "System"


async def test_logger_swallows_persistence_failures() -> None:
    def broken_factory() -> AbstractAsyncContextManager[AsyncSession]:
        raise RuntimeError("database unavailable")

    failing_logger = AuditLogger(broken_factory, background=False)
    await failing_logger.log_compliance_event(
        "COMPLIANCE_VIOLATION", "RULE", "TYPE", "LeaveRequest", None, "Something broke"
    )


async def test_record_access_denied(db_session: AsyncSession) -> None:
    await record_access_denied(HR_AUTH, "Tried something")
    [entry] = await _entries(db_session, "ACCESS_DENIED")
    assert entry.severity == "MEDIUM"
    assert entry.description == "Tried something"
    assert entry.organization_id == ORGANIZATION_ID


# ---------------------------------------------------------------------------
# Queries and retention
# ---------------------------------------------------------------------------


async def _seed_log(session: AsyncSession) -> uuid.UUID:
    entity_id = uuid.uuid4()
    for action in (AuditAction.CREATE, AuditAction.UPDATE, AuditAction.DELETE):
        await write_audit_log(
            session, auth=HR_AUTH, entity_type=AuditEntityType.LEAVE_TYPE, entity_id=entity_id, action=action
        )
    await write_audit_log(
        session, auth=HR_AUTH, entity_type=AuditEntityType.HOLIDAY, entity_id=uuid.uuid4(), action=AuditAction.CREATE
    )
    other_auth = HR_AUTH.model_copy(update={"organization_id": OTHER_ORGANIZATION_ID})
    await write_audit_log(
        session, auth=other_auth, entity_type=AuditEntityType.LEAVE_TYPE, entity_id=entity_id, action=AuditAction.CREATE
    )
    await session.flush()
    return entity_id


async def test_query_filters(db_session: AsyncSession) -> None:
    entity_id = await _seed_log(db_session)

    everything = await query_audit_logs(db_session, ORGANIZATION_ID)
    assert everything.total == 4

    creates = await query_audit_logs(db_session, ORGANIZATION_ID, action="CREATE")
    assert creates.total == 2

    deletes = await query_audit_logs(db_session, ORGANIZATION_ID, severity="HIGH")
    assert [e.action for e in deletes.items] == ["DELETE"]

    by_actor = await query_audit_logs(db_session, ORGANIZATION_ID, actor_id=uuid.uuid4())
    assert by_actor.total == 0

    page = await query_audit_logs(db_session, ORGANIZATION_ID, limit=2)
    assert page.total == 4
    assert len(page.items) == 2

    history = await get_entity_history(db_session, ORGANIZATION_ID, "LeaveType", str(entity_id))
    assert sorted(e.action for e in history.items) == ["CREATE", "DELETE", "UPDATE"]


async def test_security_events_listing(db_session: AsyncSession) -> None:
    await _seed_log(db_session)
    await record_access_denied(HR_AUTH, "Nope")

    events = await list_security_events(db_session, ORGANIZATION_ID)
    assert events.total == 1
    assert events.items[0].action == "ACCESS_DENIED"


async def test_cleanup_deletes_only_old_entries(db_session: AsyncSession) -> None:
    now = now_utc()
    db_session.add(AuditLog(action="OLD", organization_id=ORGANIZATION_ID, created_at=now - timedelta(days=120)))
    db_session.add(AuditLog(action="NEW", organization_id=ORGANIZATION_ID, created_at=now - timedelta(days=10)))
    await db_session.flush()

    deleted = await cleanup_old_audit_logs(db_session, retention_days=90, now=now)
    assert deleted == 1
    assert await _entries(db_session, "OLD") == []
    assert len(await _entries(db_session, "NEW")) == 1

    [entry] = await _entries(db_session, "CLEANUP")
    assert entry.module == "SYSTEM"
    assert entry.actor_id is None
    assert entry.additional_data is not None
    assert entry.additional_data["deleted"] == 1
    assert entry.additional_data["retention_days"] == 90


# ---------------------------------------------------------------------------
# HTTP: authentication and organization scope
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"X-Organization-Id": str(ORGANIZATION_ID)},
        {"X-Organization-Id": "not-a-uuid", "X-User-Id": str(HR_ID)},
        {"X-Organization-Id": str(ORGANIZATION_ID), "X-User-Id": str(HR_ID), "X-Role": "superuser"},
    ],
)
async def test_bad_auth_headers_are_rejected(async_client: AsyncClient, headers: dict[str, str]) -> None:
    resp = await async_client.get(AUDIT_URL, headers=headers)
    assert resp.status_code == 401
    assert resp.json()["error"] == "AuthenticationError"


async def test_organization_mismatch_is_logged(async_client: AsyncClient, db_session: AsyncSession) -> None:
    resp = await async_client.get(f"/organizations/{OTHER_ORGANIZATION_ID}/audit-logs", headers=HR_HEADERS)
    assert resp.status_code == 403

    [entry] = await _entries(db_session, "ACCESS_DENIED")
    assert entry.organization_id == ORGANIZATION_ID
    assert entry.actor_id == HR_ID
    assert str(OTHER_ORGANIZATION_ID) in (entry.description or "")


async def test_query_endpoint(async_client: AsyncClient, db_session: AsyncSession) -> None:
    entity_id = await _seed_log(db_session)

    resp = await async_client.get(AUDIT_URL, params={"entity_type": "LeaveType"}, headers=HR_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["total"] == 3

    resp = await async_client.get(f"{AUDIT_URL}/entities/LeaveType/{entity_id}", headers=HR_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["total"] == 3


async def test_query_endpoint_requires_hr(async_client: AsyncClient, db_session: AsyncSession) -> None:
    headers = {**HR_HEADERS, "X-Role": "manager"}
    resp = await async_client.get(AUDIT_URL, headers=headers)
    assert resp.status_code == 403

    resp = await async_client.get(f"{AUDIT_URL}/security-events", headers=HR_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["items"][0]["user_role"] == "manager"


async def test_cleanup_endpoint_is_admin_only(async_client: AsyncClient, db_session: AsyncSession) -> None:
    db_session.add(AuditLog(action="OLD", organization_id=ORGANIZATION_ID, created_at=now_utc() - timedelta(days=45)))
    await db_session.flush()

    resp = await async_client.post(f"{AUDIT_URL}/cleanup", headers=HR_HEADERS)
    assert resp.status_code == 403

    resp = await async_client.post(f"{AUDIT_URL}/cleanup", params={"retention_days": 30}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"deleted": 1, "retention_days": 30}

    [entry] = await _entries(db_session, "CLEANUP")
    assert entry.actor_id == ADMIN_ID
    assert entry.severity == "MEDIUM"
