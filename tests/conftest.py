"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database (via aiosqlite) with the
ORM schema created directly from the models. Redis is never initialised, so
rate limiting is disabled.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

os.environ["FLEETLEARN_JWT_SECRET"] = "test-secret-not-for-production-use"
os.environ["FLEETLEARN_LOG_FORMAT"] = "console"

from fleetlearn.config import get_settings  # noqa: E402
from fleetlearn.database import close_db, get_engine, get_session, init_db  # noqa: E402
from fleetlearn.db import models  # noqa: E402, F401
from fleetlearn.db.base import Base  # noqa: E402
from fleetlearn.main import create_app  # noqa: E402

get_settings.cache_clear()

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def _enable_foreign_keys(dbapi_connection, _record) -> None:  # noqa: ANN001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Initialise an in-memory database with the full schema."""
    await init_db(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    engine = get_engine()
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for seeding and assertions."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to a fresh app instance."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
