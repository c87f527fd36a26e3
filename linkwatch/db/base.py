"""
Database engine and session management.

SQLAlchemy 2.0 async. MariaDB (aiomysql) in production; any async URL can
be supplied through ``DATABASE_URL``.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from linkwatch.core.config import settings

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base shared by all linkwatch tables."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def _engine_options(url: str) -> dict[str, Any]:
    """Pool sizing only applies to server databases."""
    options: dict[str, Any] = {"echo": settings.app_debug}
    if url.startswith("mysql"):
        options.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    return options


engine = create_async_engine(
    settings.async_database_url,
    **_engine_options(settings.async_database_url),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Unit of work: commit on success, roll back on any exception.

    Used by the collector, one context per link.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping :func:`get_session_context`."""
    async with get_session_context() as session:
        yield session


async def init_db() -> None:
    """Create missing tables."""
    from linkwatch.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
