from sqlmodel import SQLModel

from hrms.models.audit import AuditLog
from hrms.models.balance import LeaveBalance
from hrms.models.base import TimestampMixin, UUIDBase
from hrms.models.enums import (
    AuditAction,
    AuditEntityType,
    AuditModule,
    AuditSeverity,
    AuditStatus,
    HalfDayPeriod,
    LeaveCategory,
    LeaveStatus,
    Role,
)
from hrms.models.holiday import Holiday
from hrms.models.leave_type import LeaveType
from hrms.models.request import LeaveRequest

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "AuditModule",
    "AuditSeverity",
    "AuditStatus",
    "HalfDayPeriod",
    "Holiday",
    "LeaveBalance",
    "LeaveCategory",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "Role",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
