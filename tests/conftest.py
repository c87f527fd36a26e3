"""Root conftest - shared fixtures for all tests."""
from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio

# Ensure we use a test database URL (SQLite in-memory) for tests
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///file::memory:?cache=shared",
)

from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from linkwatch.db.base import Base  # noqa: E402
from linkwatch.snmp.engine import SnmpCredentials  # noqa: E402
from tests.fakes import FakeSessionFactory, FakeSnmpSession  # noqa: E402


# ══════════════════════════════════════════════════════════════════
# Fake SNMP sessions
# ══════════════════════════════════════════════════════════════════


@pytest.fixture
def fake_session() -> FakeSnmpSession:
    return FakeSnmpSession()


@pytest.fixture
def fake_factory(fake_session: FakeSnmpSession) -> FakeSessionFactory:
    return FakeSessionFactory(fake_session)


@pytest.fixture
def credentials() -> SnmpCredentials:
    return SnmpCredentials(version="2c", community="public", timeout=1000, retries=0)


# ══════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════


@pytest_asyncio.fixture
async def db_sessionmaker() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh in-memory database per test, tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    from linkwatch.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def session_context(db_sessionmaker: async_sessionmaker[AsyncSession]):
    """Same contract as linkwatch.db.base.get_session_context, on the test DB."""

    @asynccontextmanager
    async def _context() -> AsyncGenerator[AsyncSession, None]:
        async with db_sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _context
