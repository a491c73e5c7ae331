from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from scaleflow.core.config import settings


def build_engine(url: str) -> AsyncEngine:
    """
    Async engine for Postgres (asyncpg) in deployments or SQLite (aiosqlite) locally.
    """
    if make_url(url).get_backend_name() == "sqlite":
        return create_async_engine(url, echo=False)

    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,  # hosted Postgres drops idle connections
        pool_recycle=300,
    )


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Query params asyncpg rejects (sslmode, channel_binding) are stripped by config.
engine: AsyncEngine = build_engine(settings.DATABASE_URL_ASYNC_CLEAN)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One AsyncSession per request. Uncommitted work is rolled back if the
    handler raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
