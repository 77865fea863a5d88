"""
SkillSwap Backend — Application Package Initializer
=====================================================

What: The `skillswap` package: a FastAPI backend for a skill-exchange platform.
Who:  Imported by uvicorn (skillswap.main:app), Alembic and pytest.

Architecture Note:
    This backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │     Routes (HTTP / WebSocket)       │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (Business Logic)       │  ← Resolver, state machine, stores
    ├─────────────────────────────────────┤
    │     Models & Schemas (Data)         │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     Database (Persistence)          │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
