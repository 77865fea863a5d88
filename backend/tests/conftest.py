"""
SkillSwap Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (real in-memory DB, API client,
       user factories).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, created fresh for each test):
    ├── db_engine:        In-memory aiosqlite engine with all tables
    ├── session_factory:  async_sessionmaker bound to db_engine
    ├── db_session:       One AsyncSession for service-level tests
    ├── test_client:      HTTPX AsyncClient against a fresh app whose session
    │                     dependency is bound to db_engine
    └── register_user:    Factory registering a user through the API

Service tests use `db_session`; API tests use `test_client`. The two are not
mixed inside one test: the in-memory database lives on a single shared
connection, and two sessions with open transactions on it would collide.
"""

import os

# Override settings for testing BEFORE any skillswap imports
# Why: Prevents tests from using production database or secrets
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["AUTO_CREATE_TABLES"] = "false"

from typing import Any, AsyncGenerator, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import skillswap.models  # noqa: E402,F401
from skillswap import database  # noqa: E402
from skillswap.database import Base, enable_sqlite_savepoints, get_db_session  # noqa: E402
from skillswap.services.presence import presence_registry  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite with every table created.

    StaticPool keeps the single connection alive for the whole test, since
    an in-memory database disappears with its connection.
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def clear_presence():
    """The presence registry is process-wide; start and end every test empty."""
    presence_registry.clear()
    yield
    presence_registry.clear()


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, db_engine, monkeypatch):
    """
    Provides an async HTTP test client for endpoint testing.

    What:    HTTPX AsyncClient talking to a fresh FastAPI app.
    How:     Uses ASGITransport to route requests directly to the app; the
             session dependency, the chat socket's session factory and the
             engine probed by /health all point at the test database.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from skillswap.main import create_app
    from skillswap.routes import chat

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    monkeypatch.setattr(chat, "async_session_factory", session_factory)
    monkeypatch.setattr(database, "engine", db_engine)

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(test_client):
    """
    Factory: register a password account through the API.

    Returns the AuthResponse body ({"token", "user"}) plus a ready-made
    "headers" entry for authenticated calls.

    Usage:
        alice = await register_user("Alice")
        await test_client.get("/api/users", headers=alice["headers"])
    """

    async def _register(
        name: str,
        email: Optional[str] = None,
        password: str = "secret123",
        skills_to_teach: Optional[List[str]] = None,
        skills_to_learn: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "name": name,
            "email": email or f"{name.lower()}@example.com",
            "password": password,
        }
        if skills_to_teach is not None:
            body["skillsToTeach"] = skills_to_teach
        if skills_to_learn is not None:
            body["skillsToLearn"] = skills_to_learn
        response = await test_client.post("/api/users/register", json=body)
        assert response.status_code == 201, response.text
        data = response.json()
        data["headers"] = auth_headers(data["token"])
        return data

    return _register


# ══════════════════════════════════════════════════════════════════════════
# Service-Level Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    """
    Factory: insert a password user directly (no bcrypt, no API).

    Usage:
        alice = await make_user("Alice")
    """
    from skillswap.models.user import User

    async def _make(name: str, email: Optional[str] = None) -> User:
        user = User(
            name=name,
            email=email or f"{name.lower()}@example.com",
            password_hash="not-a-real-hash",
            photo_url="https://example.com/photo.png",
            points=0,
            has_received_free_points=False,
            skills_to_teach=[],
            skills_to_learn=[],
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make
