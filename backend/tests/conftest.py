from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_hrms.db")
os.environ.setdefault("AUDIT_BACKGROUND", "false")

from hrms.config import get_settings  # noqa: E402
from hrms.db import get_session  # noqa: E402
from hrms.main import app  # noqa: E402
from hrms.models import SQLModel  # noqa: E402
from hrms.services.audit import AuditLogger, set_audit_logger  # noqa: E402
from hrms.services.employee import InMemoryEmployeeDirectory, set_employee_directory  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator
    from contextlib import AbstractAsyncContextManager

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture(scope="session")
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create a session-scoped async engine and ensure tables exist."""
    settings = get_settings()
    _engine = create_async_engine(settings.database_url)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test."""
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        yield session
        await session.close()
        await txn.rollback()


@pytest.fixture
def session_factory(db_session: AsyncSession) -> Callable[[], AbstractAsyncContextManager[AsyncSession]]:
    """Session factory bound to the test connection, so its writes roll back with the test."""

    @asynccontextmanager
    async def _factory() -> AsyncIterator[AsyncSession]:
        async with AsyncSession(bind=db_session.bind, expire_on_commit=False) as session:
            yield session

    return _factory


@pytest.fixture(autouse=True)
def audit_logger(
    session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
) -> Iterator[AuditLogger]:
    """Route audit logger writes through the test connection, synchronously."""
    audit_logger = AuditLogger(session_factory, background=False)
    set_audit_logger(audit_logger)
    yield audit_logger
    set_audit_logger(None)


@pytest.fixture(autouse=True)
def directory() -> Iterator[InMemoryEmployeeDirectory]:
    """A fresh in-memory employee directory for every test."""
    directory = InMemoryEmployeeDirectory()
    set_employee_directory(directory)
    yield directory
    set_employee_directory(InMemoryEmployeeDirectory())


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
