"""The ``auditable`` decorator: automatic audit records around async service functions.

Entry and exit hooks share an explicit per-call :class:`AuditCallContext`
instead of thread- or task-bound storage, so nothing outlives the call.

Entity identity is derived in this order:

1. a result implementing :class:`AuditIdentifiable`,
2. the first UUID, integer or digit-only string argument,
3. the result's ``id`` attribute.

The display name comes from ``AuditIdentifiable.audit_entity_name``, then the
first populated attribute of ``name``, ``title``, ``first_name``,
``username`` or ``employee_number``, then ``str(result)``. The fallbacks are
naming conventions and can yield ``None`` or an unrelated value for objects
that do not follow them; implement ``AuditIdentifiable`` where it matters.
"""

from __future__ import annotations

import functools
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ParamSpec, Protocol, TypeVar, runtime_checkable

from hrms.models.enums import DATA_MODIFICATION_ACTIONS, AuditSeverity, AuditStatus
from hrms.schemas.auth import AuthContext
from hrms.services.audit import get_audit_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

_NAME_ATTRIBUTES = ("name", "title", "first_name", "username", "employee_number")


@runtime_checkable
class AuditIdentifiable(Protocol):
    """Explicit identity for objects that appear in the audit log."""

    def audit_entity_id(self) -> str | None: ...

    def audit_entity_name(self) -> str | None: ...


@dataclass
class AuditCallContext:
    """State captured when an auditable call starts, handed to its exit hook."""

    function: str
    args: tuple[Any, ...]
    kwargs: dict[str, Any]
    started_at: float = field(default_factory=time.monotonic)

    @property
    def arguments(self) -> list[Any]:
        return [*self.args, *self.kwargs.values()]

    @property
    def auth(self) -> AuthContext | None:
        for value in self.arguments:
            if isinstance(value, AuthContext):
                return value
        return None

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


def _id_from_argument(value: object) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, uuid.UUID)):
        return str(value)
    if isinstance(value, str) and value.isdigit():
        return value
    return None


def extract_entity_id(arguments: list[Any], result: object) -> str | None:
    """Best-effort entity id for an audited call."""
    if isinstance(result, AuditIdentifiable):
        return result.audit_entity_id()

    for value in arguments:
        entity_id = _id_from_argument(value)
        if entity_id is not None:
            return entity_id

    result_id = getattr(result, "id", None)
    return str(result_id) if result_id is not None else None


def extract_entity_name(result: object) -> str | None:
    """Best-effort human readable label for an audited result."""
    if result is None:
        return None
    if isinstance(result, AuditIdentifiable):
        return result.audit_entity_name()

    for attribute in _NAME_ATTRIBUTES:
        value = getattr(result, attribute, None)
        if value is not None and not callable(value):
            return str(value)

    try:
        return str(result)
    except Exception:
        return None


async def _after_success(
    context: AuditCallContext,
    action: str,
    entity_type: str,
    severity: AuditSeverity | None,
    description: str,
    result: object,
) -> None:
    try:
        entity_id = extract_entity_id(context.arguments, result)
        entity_name = extract_entity_name(result)
        audit_logger = get_audit_logger()

        if action.upper() in DATA_MODIFICATION_ACTIONS:
            await audit_logger.log_data_change(
                action,
                entity_type,
                entity_id,
                entity_name,
                None,
                result,
                auth=context.auth,
                severity=severity.value if severity else None,
                additional_data={"function": context.function, "duration_ms": context.elapsed_ms},
            )
        else:
            await audit_logger.log_system_event(
                action,
                description or f"Executed {action} on {entity_type}",
                (severity or AuditSeverity.LOW).value,
                {
                    "function": context.function,
                    "entity_id": entity_id,
                    "entity_name": entity_name,
                    "duration_ms": context.elapsed_ms,
                },
                auth=context.auth,
                entity_type=entity_type,
                entity_id=entity_id,
            )
    except Exception as exc:
        logger.warning("Failed to log audit event for %s: %s", context.function, exc)


async def _after_failure(
    context: AuditCallContext,
    action: str,
    entity_type: str,
    error: BaseException,
) -> None:
    try:
        entity_id = extract_entity_id(context.arguments, None)
        await get_audit_logger().log_system_event(
            f"{action}_FAILED",
            f"Failed to execute {action} on {entity_type}: {error}",
            AuditSeverity.HIGH.value,
            {
                "function": context.function,
                "entity_id": entity_id,
                "error": str(error),
                "exception_type": type(error).__name__,
                "duration_ms": context.elapsed_ms,
            },
            auth=context.auth,
            status=AuditStatus.FAILURE,
            entity_type=entity_type,
            entity_id=entity_id,
            error_message=str(error),
        )
    except Exception as exc:
        logger.warning("Failed to log audit failure event for %s: %s", context.function, exc)


def auditable(
    action: str,
    entity_type: str,
    severity: AuditSeverity | None = None,
    description: str = "",
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Record an audit entry after the decorated coroutine returns or raises.

    ``CREATE``, ``UPDATE`` and ``DELETE`` produce a data change record; any other
    action produces a system event. A raised exception produces an
    ``<ACTION>_FAILED`` event with HIGH severity and is then re-raised unchanged.
    """
    action = str(action)
    entity_type = str(entity_type)

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            context = AuditCallContext(function=func.__name__, args=args, kwargs=dict(kwargs))
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                await _after_failure(context, action, entity_type, exc)
                raise
            await _after_success(context, action, entity_type, severity, description, result)
            return result

        return wrapper

    return decorator
