# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Path, Request

from hrms.exceptions import AuthenticationError, AuthorizationError
from hrms.models.enums import Role
from hrms.schemas.auth import AuthContext
from hrms.services.audit import record_access_denied


def _parse_uuid(value: str | None, header: str) -> uuid.UUID:
    if not value:
        raise AuthenticationError(f"Missing {header} header")
    try:
        return uuid.UUID(value)
    except ValueError:
        raise AuthenticationError(f"Malformed {header} header") from None


async def get_auth_context(
    request: Request,
    x_organization_id: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
    x_role: str = Header(default=Role.EMPLOYEE.value),
    x_username: str | None = Header(default=None),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    organization_id = _parse_uuid(x_organization_id, "X-Organization-Id")
    user_id = _parse_uuid(x_user_id, "X-User-Id")
    try:
        role = Role(x_role.lower())
    except ValueError:
        raise AuthenticationError(f"Unknown role {x_role!r}") from None

    return AuthContext(
        organization_id=organization_id,
        user_id=user_id,
        role=role,
        username=x_username,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_hr(
    auth: AuthDep,
    request: Request,
) -> AuthContext:
    """Require admin or HR manager role for the request."""
    if not auth.is_hr:
        await record_access_denied(auth, f"HR access required for {request.method} {request.url.path}")
        raise AuthorizationError("HR access required")
    return auth


HRDep = Annotated[AuthContext, Depends(require_hr)]


async def require_admin(
    auth: AuthDep,
    request: Request,
) -> AuthContext:
    """Require admin role for the request."""
    if auth.role != Role.ADMIN:
        await record_access_denied(auth, f"Admin access required for {request.method} {request.url.path}")
        raise AuthorizationError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def require_reviewer(
    auth: AuthDep,
    request: Request,
) -> AuthContext:
    """Require a role that can review leave requests."""
    if not auth.is_reviewer:
        await record_access_denied(auth, f"Reviewer access required for {request.method} {request.url.path}")
        raise AuthorizationError("Reviewer access required")
    return auth


ReviewerDep = Annotated[AuthContext, Depends(require_reviewer)]


async def validate_organization_scope(
    organization_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Ensure the path organization_id matches the auth header organization_id."""
    if organization_id != auth.organization_id:
        await record_access_denied(auth, f"Organization mismatch: requested {organization_id}")
        raise AuthorizationError("Organization ID mismatch")
    return auth
