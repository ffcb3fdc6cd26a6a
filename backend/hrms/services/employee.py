# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class EmployeeInfo(BaseModel):
    """Employee record as exposed by the employee directory."""

    id: uuid.UUID
    organization_id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    employee_number: str | None = None
    manager_id: uuid.UUID | None = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@runtime_checkable
class EmployeeDirectory(Protocol):
    """Interface for the employee directory."""

    async def get_employee(self, organization_id: uuid.UUID, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch an employee. Returns None if not found."""
        ...

    async def list_employees(self, organization_id: uuid.UUID) -> list[EmployeeInfo]:
        """List all employees of an organization."""
        ...

    async def list_organization_ids(self) -> list[uuid.UUID]:
        """List every organization that has employees."""
        ...


class InMemoryEmployeeDirectory:
    """In-memory directory used for development and tests."""

    def __init__(self) -> None:
        self._employees: dict[tuple[uuid.UUID, uuid.UUID], EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Insert or replace an employee."""
        self._employees[(employee.organization_id, employee.id)] = employee

    async def get_employee(self, organization_id: uuid.UUID, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch an employee. Returns None if not found."""
        return self._employees.get((organization_id, employee_id))

    async def list_employees(self, organization_id: uuid.UUID) -> list[EmployeeInfo]:
        """List all employees of an organization."""
        return [e for e in self._employees.values() if e.organization_id == organization_id]

    async def list_organization_ids(self) -> list[uuid.UUID]:
        """List every organization that has employees."""
        return sorted({org_id for org_id, _ in self._employees})


_employee_directory: EmployeeDirectory = InMemoryEmployeeDirectory()


def get_employee_directory() -> EmployeeDirectory:
    """FastAPI dependency for the employee directory."""
    return _employee_directory


def set_employee_directory(directory: EmployeeDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _employee_directory
    _employee_directory = directory
