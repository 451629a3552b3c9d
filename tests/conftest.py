"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (auth, bookings, absences, evaluation, etc.).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from datetime import date, datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from timetrack.auth.models import User
from timetrack.auth.service import create_session, hash_password
from timetrack.common.constants import UserRole
from timetrack.database import Base, get_db
from timetrack.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import timetrack.absences.models  # noqa: F401
import timetrack.access.models  # noqa: F401
import timetrack.bookings.models  # noqa: F401
import timetrack.common.audit  # noqa: F401
import timetrack.daily_values.models  # noqa: F401
import timetrack.day_plans.models  # noqa: F401
import timetrack.employees.models  # noqa: F401
import timetrack.export_interfaces.models  # noqa: F401
import timetrack.holidays.models  # noqa: F401
import timetrack.macros.models  # noqa: F401
import timetrack.monthly_values.models  # noqa: F401
import timetrack.tariffs.models  # noqa: F401
import timetrack.tenants.models  # noqa: F401

from timetrack.day_plans.models import DayPlan
from timetrack.employees.models import Employee
from timetrack.tariffs.models import Tariff
from timetrack.tenants.models import Tenant

# ── SQLite compat: compile PG-specific types to TEXT/BLOB ───────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
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
    from timetrack.common.rate_limit import limiter

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

def _make_tenant(*, name: str = "Acme GmbH", slug: Optional[str] = None) -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        slug=slug or f"acme-{uuid.uuid4().hex[:6]}",
        is_active=True,
        settings={},
    )


def _make_day_plan(tenant_id: uuid.UUID, *, code: str = "STD", **overrides) -> dict:
    """Fixed 8-hour plan, 08:00–17:00 window."""
    data = dict(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        code=code,
        name="Standard day",
        plan_type="fixed",
        come_from=480,
        go_to=1020,
        regular_hours=480,
    )
    data.update(overrides)
    return data


def _make_tariff(
    tenant_id: uuid.UUID,
    day_plan_id: uuid.UUID,
    *,
    code: str = "FT40",
    credit_type: str = "complete_carryover",
) -> dict:
    """Monday to Friday on *day_plan_id*, weekends off."""
    return dict(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        code=code,
        name="Full time 40h",
        day_plan_monday_id=day_plan_id,
        day_plan_tuesday_id=day_plan_id,
        day_plan_wednesday_id=day_plan_id,
        day_plan_thursday_id=day_plan_id,
        day_plan_friday_id=day_plan_id,
        credit_type=credit_type,
    )


def _make_employee(
    tenant_id: uuid.UUID,
    *,
    personnel_number: str = "1001",
    first_name: str = "Erika",
    last_name: str = "Muster",
    tariff_id: Optional[uuid.UUID] = None,
    entry_date: date = date(2024, 1, 1),
) -> dict:
    return dict(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        personnel_number=personnel_number,
        first_name=first_name,
        last_name=last_name,
        email=f"{first_name.lower()}.{last_name.lower()}@example.com",
        entry_date=entry_date,
        tariff_id=tariff_id,
        is_active=True,
    )


@pytest.fixture
async def tenant(db) -> Tenant:
    obj = Tenant(**_make_tenant())
    db.add(obj)
    await db.commit()
    return obj


@pytest.fixture
async def day_plan(db, tenant) -> DayPlan:
    obj = DayPlan(**_make_day_plan(tenant.id))
    db.add(obj)
    await db.commit()
    return obj


@pytest.fixture
async def tariff(db, tenant, day_plan) -> Tariff:
    obj = Tariff(**_make_tariff(tenant.id, day_plan.id))
    db.add(obj)
    await db.commit()
    return obj


@pytest.fixture
async def employee(db, tenant, tariff) -> Employee:
    """Active employee on the Monday–Friday tariff."""
    obj = Employee(**_make_employee(tenant.id, tariff_id=tariff.id))
    db.add(obj)
    await db.commit()
    return obj


# ── Auth helpers ────────────────────────────────────────────────────

async def create_user(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    role: UserRole = UserRole.employee,
    *,
    email: Optional[str] = None,
    password: str = "s3cret-pass",
    employee_id: Optional[uuid.UUID] = None,
) -> User:
    user = User(
        tenant_id=tenant_id,
        email=email or f"{role.value}-{uuid.uuid4().hex[:6]}@example.com",
        display_name=f"Test {role.value}",
        password_hash=hash_password(password),
        role=role.value,
        employee_id=employee_id,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


async def auth_headers_for(db: AsyncSession, user: User) -> dict[str, str]:
    """Bearer headers backed by a persisted session."""
    access_token, _, _ = await create_session(db, user, "127.0.0.1", "pytest")
    await db.commit()
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def admin_headers(db, tenant) -> dict[str, str]:
    user = await create_user(db, tenant.id, UserRole.admin)
    return await auth_headers_for(db, user)


@pytest.fixture
async def manager_headers(db, tenant) -> dict[str, str]:
    user = await create_user(db, tenant.id, UserRole.manager)
    return await auth_headers_for(db, user)


@pytest.fixture
async def employee_headers(db, tenant, employee) -> dict[str, str]:
    """Headers of a user linked to the ``employee`` fixture."""
    user = await create_user(db, tenant.id, UserRole.employee, employee_id=employee.id)
    return await auth_headers_for(db, user)
