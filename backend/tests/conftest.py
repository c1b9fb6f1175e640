"""
NoteTree Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, fresh for each test):
    ├── db_engine: in-memory SQLite engine with all tables created
    │   └── session_factory → db_session: real AsyncSession for service tests
    ├── mock_db_session: AsyncMock session for pure unit tests
    ├── make_user: inserts a user straight into db_session
    └── test_client: HTTPX AsyncClient over a fresh app wired to db_engine
        └── signup: registers + logs in a user over HTTP, returns auth headers
"""

import os

# Override settings for testing BEFORE any notetree imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-not-for-production-use-0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"          # Minimum cost keeps hashing fast
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"        # Reduce noise during tests

from typing import AsyncGenerator, Awaitable, Callable, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import notetree.models  # noqa: F401  (registers tables on Base.metadata)
from notetree.database import Base, get_db_session
from notetree.models.user import User


DEFAULT_PASSWORD = "correct-horse"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with the schema created.

    StaticPool keeps a single connection, so every session (and every
    HTTP request in API tests) sees the same database.
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A real session for service tests. Never committed."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = result
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_user(db_session) -> Callable[[str], Awaitable[User]]:
    """Inserts a user without going through bcrypt. For note tests."""

    async def _make_user(username: str) -> User:
        user = User(username=username, password_hash="not-a-real-hash")
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to a fresh FastAPI app.

    The app's session dependency is replaced by one bound to the test
    engine, keeping the commit/rollback behaviour of the real one.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from notetree.main import create_app

    app = create_app()

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def signup(test_client) -> Callable[..., Awaitable[Dict]]:
    """
    Registers a user over HTTP and logs them in.

    Returns a dict with the created `user` (JSON) and ready-to-use
    `headers` carrying the bearer token.
    """

    async def _signup(username: str, password: str = DEFAULT_PASSWORD) -> Dict:
        created = await test_client.post(
            "/api/users", json={"username": username, "password": password}
        )
        assert created.status_code == 201, created.text
        login = await test_client.post(
            "/api/users/login", json={"username": username, "password": password}
        )
        assert login.status_code == 200, login.text
        token = login.json()["token"]
        return {
            "user": created.json(),
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _signup
