"""Worker process for scheduled leave jobs.

Runs an asyncio loop that once per interval:

- expires pending requests whose start date has passed,
- on January 1st carries unused days forward and opens the new year's balances,
- deletes audit entries older than the retention window.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from hrms.config import get_settings
from hrms.db import dispose_engine, get_session_factory
from hrms.logging_config import configure_logging
from hrms.models.enums import AuditSeverity
from hrms.services.audit import cleanup_old_audit_logs, get_audit_logger
from hrms.services.balance import initialize_balances, process_carry_forward
from hrms.services.employee import get_employee_directory
from hrms.services.request import expire_stale_requests

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractAsyncContextManager

    from sqlalchemy.ext.asyncio import AsyncSession

    SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

logger = logging.getLogger(__name__)


@dataclass
class WorkerRunSummary:
    """What one pass of the daily jobs did."""

    run_date: date
    expired_requests: int = 0
    carried_forward: int = 0
    balances_initialized: int = 0
    audit_entries_deleted: int = 0
    failed_jobs: list[str] = field(default_factory=list)


async def _run_year_rollover(session_factory: SessionFactory, today: date, summary: WorkerRunSummary) -> None:
    directory = get_employee_directory()
    for organization_id in await directory.list_organization_ids():
        async with session_factory() as session:
            result = await process_carry_forward(session, organization_id, today.year - 1, today.year)
        summary.carried_forward += result.carried

        for employee in await directory.list_employees(organization_id):
            if not employee.is_active:
                continue
            async with session_factory() as session:
                summary.balances_initialized += await initialize_balances(
                    session, organization_id, employee.id, today.year
                )


async def run_daily_jobs(session_factory: SessionFactory, today: date | None = None) -> WorkerRunSummary:
    """Run every daily job once. A failing job is logged and does not stop the others."""
    today = today or date.today()
    summary = WorkerRunSummary(run_date=today)

    try:
        async with session_factory() as session:
            summary.expired_requests = await expire_stale_requests(session, today=today)
    except Exception:
        logger.exception("Leave request expiry failed for %s", today)
        summary.failed_jobs.append("expire_requests")

    # Year rollover only fires on Jan 1
    if today.month == 1 and today.day == 1:
        try:
            await _run_year_rollover(session_factory, today, summary)
        except Exception:
            logger.exception("Year rollover failed for %s", today)
            summary.failed_jobs.append("year_rollover")

    try:
        async with session_factory() as session:
            summary.audit_entries_deleted = await cleanup_old_audit_logs(session)
    except Exception:
        logger.exception("Audit retention cleanup failed for %s", today)
        summary.failed_jobs.append("audit_cleanup")

    logger.info(
        "Daily jobs for %s: expired=%d carried=%d initialized=%d audit_deleted=%d failed=%s",
        today,
        summary.expired_requests,
        summary.carried_forward,
        summary.balances_initialized,
        summary.audit_entries_deleted,
        summary.failed_jobs or "none",
    )
    await get_audit_logger().log_system_event(
        "DAILY_JOBS",
        f"Daily leave jobs ran for {today.isoformat()}",
        (AuditSeverity.HIGH if summary.failed_jobs else AuditSeverity.LOW).value,
        {
            "expired_requests": summary.expired_requests,
            "carried_forward": summary.carried_forward,
            "balances_initialized": summary.balances_initialized,
            "audit_entries_deleted": summary.audit_entries_deleted,
            "failed_jobs": summary.failed_jobs,
        },
    )
    return summary


async def run_worker_loop() -> None:
    """Main worker loop."""
    settings = get_settings()
    logger.info("Leave worker started, interval %ds", settings.worker_interval_seconds)
    session_factory = get_session_factory()

    try:
        while True:
            await run_daily_jobs(session_factory)
            await get_audit_logger().drain()
            await asyncio.sleep(settings.worker_interval_seconds)
    finally:
        await get_audit_logger().drain()
        await dispose_engine()


def main() -> None:
    """Entry point for the worker process."""
    configure_logging(get_settings())
    asyncio.run(run_worker_loop())


if __name__ == "__main__":
    main()
