"""Tests for the ``auditable`` decorator and its entity identity helpers."""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from hrms.models.enums import AuditAction, AuditEntityType, AuditSeverity, AuditStatus, Role
from hrms.schemas.auth import AuthContext
from hrms.services.audit import AuditLogger, set_audit_logger
from hrms.services.auditable import auditable, extract_entity_id, extract_entity_name

if TYPE_CHECKING:
    from collections.abc import Iterator

AUTH = AuthContext(organization_id=uuid.uuid4(), user_id=uuid.uuid4(), role=Role.HR_MANAGER, username="hr.jane")


class Identified:
    def __init__(self, entity_id: str, name: str) -> None:
        self.id = "ignored"
        self.name = "ignored"
        self._entity_id = entity_id
        self._name = name

    def audit_entity_id(self) -> str | None:
        return self._entity_id

    def audit_entity_name(self) -> str | None:
        return self._name


@pytest.fixture
def spy() -> Iterator[AsyncMock]:
    """Replace the audit logger with a spy."""
    spy = AsyncMock(spec=AuditLogger)
    set_audit_logger(spy)
    yield spy
    set_audit_logger(None)


# ---------------------------------------------------------------------------
# extract_entity_id / extract_entity_name
# ---------------------------------------------------------------------------


def test_identifiable_result_wins() -> None:
    assert extract_entity_id([7], Identified("abc", "Thing")) == "abc"


def test_first_id_like_argument() -> None:
    entity_uuid = uuid.uuid4()
    assert extract_entity_id(["name", True, entity_uuid, 3], None) == str(entity_uuid)
    assert extract_entity_id(["x", "123"], None) == "123"
    assert extract_entity_id([42], None) == "42"


def test_bool_is_not_an_id() -> None:
    assert extract_entity_id([True], SimpleNamespace(id=9)) == "9"


def test_result_id_fallback() -> None:
    assert extract_entity_id(["abc"], SimpleNamespace(id=uuid.UUID(int=1))) == str(uuid.UUID(int=1))
    assert extract_entity_id([], object()) is None


def test_entity_name_sources() -> None:
    assert extract_entity_name(None) is None
    assert extract_entity_name(Identified("1", "Explicit")) == "Explicit"
    assert extract_entity_name(SimpleNamespace(name="Annual Leave", title="x")) == "Annual Leave"
    assert extract_entity_name(SimpleNamespace(title="Handbook")) == "Handbook"
    assert extract_entity_name(SimpleNamespace(first_name="Ada")) == "Ada"
    assert extract_entity_name(42) == "42"


# ---------------------------------------------------------------------------
# Decorator
# ---------------------------------------------------------------------------


async def test_data_change_is_logged(spy: AsyncMock) -> None:
    @auditable(AuditAction.UPDATE, AuditEntityType.LEAVE_TYPE)
    async def rename(auth: AuthContext, leave_type_id: int, name: str) -> SimpleNamespace:
        return SimpleNamespace(id=leave_type_id, name=name)

    result = await rename(AUTH, 42, "Annual")

    assert result.name == "Annual"
    spy.log_data_change.assert_awaited_once()
    args = spy.log_data_change.await_args
    assert args.args[:5] == ("UPDATE", "LeaveType", "42", "Annual", None)
    assert args.args[5] is result
    assert args.kwargs["auth"] is AUTH
    assert args.kwargs["severity"] is None
    assert args.kwargs["additional_data"]["function"] == "rename"
    spy.log_system_event.assert_not_awaited()


async def test_explicit_severity_is_passed(spy: AsyncMock) -> None:
    @auditable(AuditAction.CREATE, AuditEntityType.HOLIDAY, severity=AuditSeverity.MEDIUM)
    async def create() -> Identified:
        return Identified("h-1", "New Year")

    await create()

    args = spy.log_data_change.await_args
    assert args.args[2] == "h-1"
    assert args.args[3] == "New Year"
    assert args.kwargs["severity"] == "MEDIUM"


async def test_other_actions_are_system_events(spy: AsyncMock) -> None:
    @auditable(AuditAction.CARRY_FORWARD, AuditEntityType.LEAVE_BALANCE, description="Year end")
    async def run(organization_id: uuid.UUID, *, auth: AuthContext | None = None) -> int:
        return 3

    organization_id = uuid.uuid4()
    assert await run(organization_id, auth=AUTH) == 3

    spy.log_data_change.assert_not_awaited()
    args = spy.log_system_event.await_args
    assert args.args[0] == "CARRY_FORWARD"
    assert args.args[1] == "Year end"
    assert args.args[2] == "LOW"
    assert args.kwargs["auth"] is AUTH
    assert args.kwargs["entity_type"] == "LeaveBalance"
    assert args.kwargs["entity_id"] == str(organization_id)


async def test_failure_is_logged_and_reraised(spy: AsyncMock) -> None:
    @auditable(AuditAction.DELETE, AuditEntityType.HOLIDAY)
    async def delete(holiday_id: uuid.UUID) -> None:
        raise ValueError("still referenced")

    holiday_id = uuid.uuid4()
    with pytest.raises(ValueError, match="still referenced"):
        await delete(holiday_id)

    spy.log_data_change.assert_not_awaited()
    args = spy.log_system_event.await_args
    assert args.args[0] == "DELETE_FAILED"
    assert args.args[2] == "HIGH"
    assert args.args[3]["exception_type"] == "ValueError"
    assert args.kwargs["status"] == AuditStatus.FAILURE
    assert args.kwargs["entity_id"] == str(holiday_id)
    assert args.kwargs["error_message"] == "still referenced"


async def test_audit_failure_does_not_break_the_call(spy: AsyncMock) -> None:
    spy.log_data_change.side_effect = RuntimeError("audit store down")

    @auditable(AuditAction.CREATE, AuditEntityType.LEAVE_TYPE)
    async def create() -> SimpleNamespace:
        return SimpleNamespace(id=1, name="Sick")

    result = await create()
    assert result.name == "Sick"


async def test_wrapper_keeps_function_metadata() -> None:
    @auditable(AuditAction.CREATE, AuditEntityType.LEAVE_TYPE)
    async def create_thing() -> None:
        """Create a thing."""

    assert create_thing.__name__ == "create_thing"
    assert create_thing.__doc__ == "Create a thing."


async def test_create_uses_result_id(spy: AsyncMock) -> None:
    @auditable(AuditAction.CREATE, AuditEntityType.LEAVE_TYPE)
    async def create(code: str) -> SimpleNamespace:
        return SimpleNamespace(id=42, name=code)

    await create("AL")

    args = spy.log_data_change.await_args
    assert args.args[2] == "42"
    assert args.args[3] == "AL"
