# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from hrms.api.deps import AuthDep, HRDep, validate_organization_scope
from hrms.db import SessionDep
from hrms.schemas.leave_type import (
    CreateLeaveTypeRequest,
    LeaveTypeListResponse,
    LeaveTypeResponse,
    UpdateLeaveTypeRequest,
)
from hrms.services import leave_type as leave_type_service

leave_types_router = APIRouter(
    prefix="/organizations/{organization_id}/leave-types",
    tags=["leave-types"],
    dependencies=[Depends(validate_organization_scope)],
)


@leave_types_router.post("", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_type(
    payload: CreateLeaveTypeRequest,
    session: SessionDep,
    auth: HRDep,
) -> LeaveTypeResponse:
    """Create a leave type (HR only)."""
    return await leave_type_service.create_leave_type(session, auth, payload)


@leave_types_router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(
    session: SessionDep,
    auth: AuthDep,
    active_only: bool = Query(default=True),
) -> LeaveTypeListResponse:
    """List the organization's leave types."""
    return await leave_type_service.list_leave_types(session, auth.organization_id, active_only)


@leave_types_router.get("/{leave_type_id}", response_model=LeaveTypeResponse)
async def get_leave_type(
    leave_type_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveTypeResponse:
    """Get a single leave type."""
    return await leave_type_service.get_leave_type(session, auth.organization_id, leave_type_id)


@leave_types_router.patch("/{leave_type_id}", response_model=LeaveTypeResponse)
async def update_leave_type(
    leave_type_id: uuid.UUID,
    payload: UpdateLeaveTypeRequest,
    session: SessionDep,
    auth: HRDep,
) -> LeaveTypeResponse:
    """Update a leave type (HR only)."""
    return await leave_type_service.update_leave_type(session, auth, leave_type_id, payload)


@leave_types_router.delete("/{leave_type_id}", response_model=LeaveTypeResponse)
async def deactivate_leave_type(
    leave_type_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
) -> LeaveTypeResponse:
    """Deactivate a leave type (HR only). Existing balances and requests are kept."""
    return await leave_type_service.deactivate_leave_type(session, auth, leave_type_id)
