from __future__ import annotations

import enum


class LeaveCategory(enum.StrEnum):
    """Category of a leave type."""

    ANNUAL = "ANNUAL"
    SICK = "SICK"
    CASUAL = "CASUAL"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    BEREAVEMENT = "BEREAVEMENT"
    UNPAID = "UNPAID"
    OTHER = "OTHER"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    WITHDRAWN = "WITHDRAWN"
    EXPIRED = "EXPIRED"


TERMINAL_STATUSES = frozenset(
    {
        LeaveStatus.REJECTED,
        LeaveStatus.CANCELLED,
        LeaveStatus.WITHDRAWN,
        LeaveStatus.EXPIRED,
    }
)

# Requests in these states hold days against a balance and block overlapping requests.
ACTIVE_STATUSES = frozenset({LeaveStatus.PENDING, LeaveStatus.APPROVED})


class HalfDayPeriod(enum.StrEnum):
    """Which half of the day a half-day leave covers."""

    FIRST_HALF = "FIRST_HALF"
    SECOND_HALF = "SECOND_HALF"


class Role(enum.StrEnum):
    """Caller roles carried in the auth context."""

    ADMIN = "admin"
    HR_MANAGER = "hr_manager"
    MANAGER = "manager"
    EMPLOYEE = "employee"


REVIEWER_ROLES = frozenset({Role.ADMIN, Role.HR_MANAGER, Role.MANAGER})
HR_ROLES = frozenset({Role.ADMIN, Role.HR_MANAGER})


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    WITHDRAW = "WITHDRAW"
    EXPIRE = "EXPIRE"
    CARRY_FORWARD = "CARRY_FORWARD"
    INITIALIZE = "INITIALIZE"
    ACCESS_DENIED = "ACCESS_DENIED"
    LOGIN = "LOGIN"
    FAILED_LOGIN = "FAILED_LOGIN"
    COMPLIANCE_VIOLATION = "COMPLIANCE_VIOLATION"
    CLEANUP = "CLEANUP"


DATA_MODIFICATION_ACTIONS = frozenset({AuditAction.CREATE, AuditAction.UPDATE, AuditAction.DELETE})


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_TYPE = "LeaveType"
    LEAVE_BALANCE = "LeaveBalance"
    LEAVE_REQUEST = "LeaveRequest"
    HOLIDAY = "Holiday"
    EMPLOYEE = "Employee"
    USER = "User"
    SECURITY = "Security"
    SYSTEM = "System"


class AuditSeverity(enum.StrEnum):
    """How significant an audit record is."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AuditStatus(enum.StrEnum):
    """Outcome of the audited action."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class AuditModule(enum.StrEnum):
    """Functional area an audit record belongs to."""

    EMPLOYEE = "EMPLOYEE"
    PAYROLL = "PAYROLL"
    LEAVE = "LEAVE"
    RECRUITMENT = "RECRUITMENT"
    SECURITY = "SECURITY"
    COMPLIANCE = "COMPLIANCE"
    AUTHENTICATION = "AUTHENTICATION"
    SYSTEM = "SYSTEM"
    GENERAL = "GENERAL"
    UNKNOWN = "UNKNOWN"
