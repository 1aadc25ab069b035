# sitebuilder/db/session.py
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from sitebuilder.core.config import settings


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless every connection opts in."""

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, **overrides: Any) -> AsyncEngine:
    """
    Async engine for ``url``. Postgres (asyncpg) gets a pre-pinged,
    recycled pool; SQLite (aiosqlite, dev and tests) gets foreign keys on.
    """
    kwargs: Dict[str, Any] = {"echo": settings.DB_ECHO}
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    if not is_sqlite:
        kwargs.update(pool_pre_ping=True, pool_recycle=300)
    kwargs.update(overrides)

    engine = create_async_engine(url, **kwargs)
    if is_sqlite:
        enable_sqlite_foreign_keys(engine)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows outlive the commit that wrote them; services return them to routers.
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


engine = build_engine(settings.DATABASE_URL_ASYNC_CLEAN)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request, shared by the guard and the services it protects."""
    async with AsyncSessionLocal() as session:
        yield session
