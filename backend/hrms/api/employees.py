# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from hrms.api.deps import AuthDep, HRDep, validate_organization_scope
from hrms.exceptions import EntityNotFoundError
from hrms.schemas.employee import EmployeeListResponse, EmployeeResponse, UpsertEmployeeRequest
from hrms.services.employee import EmployeeInfo, InMemoryEmployeeDirectory, get_employee_directory

employees_router = APIRouter(
    prefix="/organizations/{organization_id}/employees",
    tags=["employees"],
    dependencies=[Depends(validate_organization_scope)],
)


def _to_response(employee: EmployeeInfo) -> EmployeeResponse:
    return EmployeeResponse(
        id=employee.id,
        organization_id=employee.organization_id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        email=employee.email,
        employee_number=employee.employee_number,
        manager_id=employee.manager_id,
        is_active=employee.is_active,
    )


@employees_router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
)
async def upsert_employee(
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    payload: UpsertEmployeeRequest,
    auth: HRDep,
) -> EmployeeResponse:
    """Create or update an employee in the in-memory directory (HR only)."""
    directory = get_employee_directory()
    if not isinstance(directory, InMemoryEmployeeDirectory):
        raise EntityNotFoundError("Writable employee directory")
    employee = EmployeeInfo(id=employee_id, organization_id=organization_id, **payload.model_dump())
    directory.seed(employee)
    return _to_response(employee)


@employees_router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
)
async def get_employee(
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    auth: AuthDep,
) -> EmployeeResponse:
    """Get an employee from the directory."""
    employee = await get_employee_directory().get_employee(organization_id, employee_id)
    if employee is None:
        raise EntityNotFoundError("Employee", employee_id)
    return _to_response(employee)


@employees_router.get(
    "",
    response_model=EmployeeListResponse,
)
async def list_employees(
    organization_id: uuid.UUID,
    auth: AuthDep,
) -> EmployeeListResponse:
    """List all employees of the organization."""
    employees = await get_employee_directory().list_employees(organization_id)
    items = [_to_response(e) for e in employees]
    return EmployeeListResponse(items=items, total=len(items))
