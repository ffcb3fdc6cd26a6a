# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class UpsertEmployeeRequest(BaseModel):
    """Request body for creating or updating an employee in the directory stub."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    employee_number: str | None = Field(default=None, max_length=50)
    manager_id: uuid.UUID | None = None
    is_active: bool = True


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    organization_id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    employee_number: str | None
    manager_id: uuid.UUID | None
    is_active: bool


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int
