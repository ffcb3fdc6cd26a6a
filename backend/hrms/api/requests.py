# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from hrms.api.deps import AuthDep, ReviewerDep, validate_organization_scope
from hrms.db import SessionDep
from hrms.models.enums import LeaveStatus, Role
from hrms.schemas.request import (
    AvailabilityQuery,
    AvailabilityResponse,
    CancelPayload,
    CreateLeaveRequestPayload,
    LeaveRequestListResponse,
    LeaveRequestResponse,
    ReviewPayload,
    UpdateLeaveRequestPayload,
)
from hrms.services import request as request_service

requests_router = APIRouter(
    prefix="/organizations/{organization_id}/leave-requests",
    tags=["leave-requests"],
    dependencies=[Depends(validate_organization_scope)],
)


@requests_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    payload: CreateLeaveRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Apply for leave."""
    return await request_service.create_leave_request(session, auth, payload)


@requests_router.get("", response_model=LeaveRequestListResponse)
async def list_leave_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    leave_type_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """List leave requests with optional filters.

    Employees only see their own; managers see their own and their direct reports'.
    """
    employee_ids = None
    if auth.role == Role.EMPLOYEE:
        employee_id = auth.user_id
    elif auth.role == Role.MANAGER:
        employee_ids = [
            auth.user_id,
            *await request_service.direct_report_ids(auth.organization_id, auth.user_id),
        ]
    return await request_service.list_leave_requests(
        session,
        auth.organization_id,
        status_filter,
        employee_id,
        leave_type_id,
        start_date,
        end_date,
        offset,
        limit,
        employee_ids,
    )


@requests_router.get("/pending-approvals", response_model=LeaveRequestListResponse)
async def list_pending_approvals(
    session: SessionDep,
    auth: ReviewerDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """Pending requests the caller can review."""
    return await request_service.list_pending_approvals(session, auth, offset, limit)


@requests_router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    payload: AvailabilityQuery,
    session: SessionDep,
    auth: AuthDep,
) -> AvailabilityResponse:
    """Check whether leave could be taken, without reserving anything."""
    return await request_service.check_availability(session, auth, payload)


@requests_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Get a single leave request."""
    return await request_service.get_leave_request(session, auth, request_id)


@requests_router.put("/{request_id}", response_model=LeaveRequestResponse)
async def update_leave_request(
    request_id: uuid.UUID,
    payload: UpdateLeaveRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Edit a pending leave request (requester only)."""
    return await request_service.update_leave_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: ReviewerDep,
    payload: ReviewPayload | None = None,
) -> LeaveRequestResponse:
    """Approve a pending leave request."""
    return await request_service.approve_leave_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/reject", response_model=LeaveRequestResponse)
async def reject_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: ReviewerDep,
    payload: ReviewPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending leave request."""
    return await request_service.reject_leave_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/cancel", response_model=LeaveRequestResponse)
async def cancel_leave_request(
    request_id: uuid.UUID,
    payload: CancelPayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Cancel a pending or approved leave request. A reason is required."""
    return await request_service.cancel_leave_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/withdraw", response_model=LeaveRequestResponse)
async def withdraw_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: CancelPayload | None = None,
) -> LeaveRequestResponse:
    """Withdraw a pending leave request (requester only)."""
    return await request_service.withdraw_leave_request(session, auth, request_id, payload)
