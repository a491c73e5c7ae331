from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

# Settings are read at import time; point them at SQLite before scaleflow loads.
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from scaleflow.core.roles import Role
from scaleflow.core.security import create_access_token
from scaleflow.db.session import get_db

# Ensure Base + models are registered before create_all
from scaleflow.db.base import Base
import scaleflow.models  # noqa: F401
from scaleflow.models.company import Company
from scaleflow.models.shift import Shift
from scaleflow.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------
# Engine + schema lifecycle (one SQLite file per test)
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'scaleflow.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ---------------------------------------------------------
# DB session for assertions / setup
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup & assertions ONLY.
    Commit before calling the API so the request session can see the rows.
    """
    async with sessionmaker() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from scaleflow.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------
# Factories
# ---------------------------------------------------------
@pytest.fixture()
def make_company(db):
    async def _make(name: Optional[str] = None) -> Company:
        company = Company(name=name or f"Company {uuid.uuid4().hex[:8]}")
        db.add(company)
        await db.flush()
        return company

    return _make


@pytest.fixture()
def make_user(db):
    async def _make(
        role: Role | str = Role.EMPLOYEE,
        company: Optional[Company] = None,
        email: Optional[str] = None,
        **fields,
    ) -> User:
        user = User(
            email=(email or f"user_{uuid.uuid4().hex[:10]}@example.com").lower(),
            role=role.value if isinstance(role, Role) else role,
            company_id=company.id if company is not None else None,
            is_active=True,
            **fields,
        )
        db.add(user)
        await db.flush()
        return user

    return _make


@pytest.fixture()
def make_shift(db):
    async def _make(
        company: Company,
        employee: Optional[User] = None,
        published: bool = True,
        starts_in_hours: int = 24,
        hours: int = 8,
    ) -> Shift:
        start = utcnow().replace(microsecond=0) + timedelta(hours=starts_in_hours)
        shift = Shift(
            company_id=company.id,
            employee_id=employee.id if employee is not None else None,
            start_time=start,
            end_time=start + timedelta(hours=hours),
            published=published,
        )
        db.add(shift)
        await db.flush()
        return shift

    return _make


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


@pytest.fixture()
def headers():
    return auth_headers
