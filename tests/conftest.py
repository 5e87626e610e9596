"""Shared test fixtures: async DB, client, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
Service methods commit their own unit of work, so seed helpers commit
before handing the session to a service.
"""

from __future__ import annotations

import os

# Keep the rate limiter out of the way of ordinary API tests
os.environ.setdefault("RATE_LIMIT_SUBMIT", "1000/minute")
os.environ.setdefault("RATE_LIMIT_DEFAULT", "1000/minute")

from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from timeoff.database import Base, get_db
from timeoff.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import timeoff.employees.models  # noqa: F401
import timeoff.leave.models  # noqa: F401

from timeoff.employees.models import Employee
from timeoff.leave.models import LeaveBalance, LeaveRequest, LeaveType

# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from timeoff.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_employee(
    *,
    employee_id: str = "E1001",
    first_name: str = "Test",
    last_name: str = "User",
    email: Optional[str] = None,
    department: str = "Engineering",
    manager_id: Optional[str] = None,
) -> dict:
    return dict(
        employee_id=employee_id,
        first_name=first_name,
        last_name=last_name,
        email=email or f"{employee_id.lower()}@example.com",
        department=department,
        manager_id=manager_id,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


async def seed_employee(db: AsyncSession, **kwargs) -> str:
    """Insert and commit an employee; returns its id."""
    data = _make_employee(**kwargs)
    db.add(Employee(**data))
    await db.commit()
    return data["employee_id"]


async def seed_leave_type(
    db: AsyncSession,
    *,
    code: str = "VAC",
    description: str = "Vacation",
    max_days_per_request: Optional[int] = None,
) -> str:
    db.add(LeaveType(
        code=code,
        description=description,
        max_days_per_request=max_days_per_request,
    ))
    await db.commit()
    return code


async def seed_balance(
    db: AsyncSession,
    employee_id: str,
    leave_type_code: str,
    *,
    accrued_days: int = 20,
    used_days: int = 0,
) -> None:
    db.add(LeaveBalance(
        employee_id=employee_id,
        leave_type_code=leave_type_code,
        accrued_days=accrued_days,
        used_days=used_days,
    ))
    await db.commit()


async def seed_setup(
    db: AsyncSession,
    *,
    employee_id: str = "E1001",
    leave_type_code: str = "VAC",
    accrued_days: int = 20,
    manager_id: Optional[str] = None,
) -> tuple[str, str]:
    """Employee + leave type + balance in one go."""
    emp = await seed_employee(db, employee_id=employee_id, manager_id=manager_id)
    if await db.get(LeaveType, leave_type_code) is None:
        await seed_leave_type(db, code=leave_type_code)
    await seed_balance(db, emp, leave_type_code, accrued_days=accrued_days)
    return emp, leave_type_code


# ── Fresh-session readers (bypass the caller's identity map) ────────

async def read_balance(employee_id: str, leave_type_code: str) -> Optional[LeaveBalance]:
    async with TestSessionFactory() as session:
        result = await session.execute(
            select(LeaveBalance).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_type_code == leave_type_code,
            )
        )
        return result.scalars().first()


async def read_request(request_id) -> Optional[LeaveRequest]:
    async with TestSessionFactory() as session:
        return await session.get(LeaveRequest, request_id)
