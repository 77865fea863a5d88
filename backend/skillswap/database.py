"""
SkillSwap Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine (pooled for PostgreSQL, plain for SQLite),
       provides a session dependency that auto-commits on success and
       auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

SQLite (local runs, tests):
    pysqlite's own transaction handling swallows SAVEPOINTs, which the skill
    resolver and connection service rely on to survive lost insert races.
    `enable_sqlite_savepoints()` hands BEGIN back to SQLAlchemy, following
    the recipe in the SQLAlchemy SQLite dialect docs.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from skillswap.config import settings


def enable_sqlite_savepoints(async_engine: AsyncEngine) -> None:
    """
    Make SAVEPOINT / nested transactions work on an aiosqlite engine.

    Also turns foreign key enforcement on, which SQLite leaves off by default.
    """
    sync_engine = async_engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable pysqlite's implicit BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create the async engine for `database_url`.

    SQLite URLs get no pool tuning (single-file database) but do get the
    savepoint fix; everything else gets the configured pool.
    """
    if database_url.startswith("sqlite"):
        sqlite_engine = create_async_engine(
            database_url,
            echo=settings.log_level == "DEBUG",
        )
        enable_sqlite_savepoints(sqlite_engine)
        return sqlite_engine

    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        # SQL logging is noisy; only useful during development
        echo=settings.log_level == "DEBUG",
    )


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: ORM objects stay readable after the request commits,
# which response serialization relies on
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic and `init_models()` read.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Every write a request performs (a profile update plus the skills it
    created on the way) therefore lands or fails as one unit.

    Example usage in a route:
        @router.get("/skills")
        async def list_skills(db: AsyncSession = Depends(get_db_session)):
            return await skill_service.list_skills(db)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models() -> None:
    """
    What:  Creates all tables that do not exist yet.
    When:  Startup, only when AUTO_CREATE_TABLES is set (local SQLite runs).
           Shared databases are migrated with Alembic instead.
    """
    # Registers every model with Base.metadata
    import skillswap.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
