# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from hrms.models.enums import HR_ROLES, REVIEWER_ROLES, Role


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: Role = Role.EMPLOYEE
    username: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def is_hr(self) -> bool:
        return self.role in HR_ROLES

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES
