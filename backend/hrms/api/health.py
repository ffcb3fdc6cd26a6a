import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from hrms.config import get_settings
from hrms.db import SessionDep
from hrms.services.audit import get_audit_logger

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

HealthStatus = Literal["ok", "degraded"]


class HealthResponse(BaseModel):
    """Liveness plus the state of the database and the audit writer."""

    status: HealthStatus
    version: str
    environment: str
    database: Literal["ok", "unreachable"]
    pending_audit_writes: int


async def _database_reachable(session: SessionDep) -> bool:
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report service health. No auth headers needed.

    A failing database marks the service ``degraded`` but still answers 200.
    """
    settings = get_settings()
    database_ok = await _database_reachable(session)
    return HealthResponse(
        status="ok" if database_ok else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="ok" if database_ok else "unreachable",
        pending_audit_writes=get_audit_logger().pending,
    )
