"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

TEST_DB_URL = "sqlite+aiosqlite://"
TEST_JWT_SECRET = "habit-ledger-test-secret-0123456789abcdef"  # noqa: S105

# Must be set before any settings are read
os.environ["HL_DATABASE_URL"] = TEST_DB_URL
os.environ["HL_JWT_ALGORITHM"] = "HS256"
os.environ["HL_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["HL_LOG_FORMAT"] = "console"

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from habitledger.auth.context import AuthContext  # noqa: E402
from habitledger.auth.jwt import reset_keys  # noqa: E402
from habitledger.auth.service import sync_user  # noqa: E402
from habitledger.clock import FixedClock, get_clock  # noqa: E402
from habitledger.config import get_settings  # noqa: E402
from habitledger.database import close_db, get_engine, get_session, init_db  # noqa: E402
from habitledger.db.base import Base  # noqa: E402
from habitledger.main import create_app  # noqa: E402

get_settings.cache_clear()
reset_keys()

# A Monday, so week boundaries are easy to reason about
FROZEN_NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_token(subject: str, expires_in: int = 3600, **claims: object) -> str:
    """Sign an identity token the way the identity provider would."""
    payload = {
        "sub": subject,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        **claims,
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


async def _init_schema() -> None:
    """Fresh in-memory database with all tables created."""
    await init_db(TEST_DB_URL)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(FROZEN_NOW)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """A direct database session against a fresh schema."""
    await _init_schema()
    sessions = get_session()
    yield await anext(sessions)
    await sessions.aclose()
    await close_db()


@pytest_asyncio.fixture
async def ctx(db_session: AsyncSession, clock: FixedClock) -> AuthContext:
    """A synced free-plan user."""
    user, _ = await sync_user(db_session, "user-1", clock, email="user1@example.com", name="User One")
    await db_session.commit()
    return AuthContext(user=user)


@pytest_asyncio.fixture
async def other_ctx(db_session: AsyncSession, clock: FixedClock) -> AuthContext:
    """A second, unrelated user."""
    user, _ = await sync_user(db_session, "user-2", clock, name="User Two")
    await db_session.commit()
    return AuthContext(user=user)


@pytest_asyncio.fixture
async def client(clock: FixedClock) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client with a fresh database and a frozen clock."""
    await _init_schema()

    app = create_app()
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()


async def sign_in(client: AsyncClient, subject: str, name: str = "Test User") -> dict:
    """Sync a user for ``subject`` and return the auth headers."""
    headers = {"Authorization": f"Bearer {make_token(subject)}"}
    response = await client.post("/api/v1/users/sync", json={"name": name}, headers=headers)
    assert response.status_code in (200, 201)
    return headers


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient) -> AsyncClient:
    """Client authenticated as a freshly synced free-plan user."""
    client.headers.update(await sign_in(client, "user-1"))
    return client


@pytest_asyncio.fixture
async def other_headers(client: AsyncClient) -> dict:
    """Auth headers for a second synced user on the same client."""
    return await sign_in(client, "user-2", name="Other User")


@pytest.fixture
def token_factory():
    """Signs identity tokens for arbitrary subjects."""
    return make_token
