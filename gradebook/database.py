"""
Async SQLAlchemy engine and session factory for the grade-book service.

Only three tables live here: subscriber accounts, per-tenant grade-book
snapshots and the admin audit log.  The URL comes from ``DATABASE_URL``;
a plain ``postgresql://`` URL is switched to the asyncpg driver.

FastAPI dependency: inject ``get_async_db()`` via ``Depends``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from gradebook.config import get_settings

logger = logging.getLogger(__name__)


def async_database_url(url: str) -> str:
    """Return *url* with the asyncpg driver selected."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _build_engine() -> AsyncEngine:
    """Create the shared async engine.

    Grade-book traffic is one interactive user per tenant, so the pool is
    kept small.
    """
    settings = get_settings()
    return create_async_engine(
        async_database_url(settings.database_url),
        pool_size=5,
        max_overflow=5,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=settings.sql_echo,
    )


engine: AsyncEngine = _build_engine()

AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for accounts, snapshots and the audit log."""


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request.

    Snapshot writes of a request are committed together on success and
    rolled back together on any exception.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables (``AUTO_CREATE_TABLES``); production uses Alembic."""
    import gradebook.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    await engine.dispose()


async def check_db_connection() -> dict[str, Any]:
    """Probe the database for ``/health``.

    Returns:
        ``{"status": "ok"}`` or ``{"status": "error", "detail": ...}``.
    """
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as exc:  # noqa: BLE001
        logger.warning("Database health probe failed: %s", exc)
        return {"status": "error", "detail": str(exc)}
