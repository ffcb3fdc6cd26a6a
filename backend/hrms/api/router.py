from fastapi import APIRouter

from hrms.api.audit import audit_router
from hrms.api.balances import balance_admin_router, employee_balance_router
from hrms.api.employees import employees_router
from hrms.api.holidays import holidays_router
from hrms.api.leave_types import leave_types_router
from hrms.api.reports import reports_router
from hrms.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(leave_types_router)
api_router.include_router(employee_balance_router)
api_router.include_router(balance_admin_router)
api_router.include_router(requests_router)
api_router.include_router(holidays_router)
api_router.include_router(employees_router)
api_router.include_router(audit_router)
api_router.include_router(reports_router)
