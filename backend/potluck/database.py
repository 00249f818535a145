"""
Potluck Backend: Database Session Management
=============================================

What:  Async SQLAlchemy engine, session factory, the per-request session
       dependency and the transaction scope used by every write.
How:   create_app() builds one engine and one session factory from the
       injected Settings and keeps them on app.state. Each request receives
       its own AsyncSession through get_db_session().

Storage capability used by the services (all on AsyncSession):
    read row     → session.get(...) / session.scalar(select(...))
    read rows    → session.scalars(select(...))
    execute      → session.execute(insert/update/delete(...))
    transaction  → async with unit_of_work(session, "operation"): ...

Backends:
    PostgreSQL via asyncpg in production (pooled connections).
    SQLite via aiosqlite for tests and quick local runs; a StaticPool keeps a
    single connection so an in-memory database survives across sessions.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from potluck.config import Settings
from potluck.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object, which Alembic and init_models() both read.
    """
    pass


# ── Engine & Session Factory ──────────────────────────────────────────────
def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    echo = settings.log_level == "DEBUG"
    if settings.is_sqlite:
        return create_async_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=echo,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: responses are built from objects after commit
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the factory stored on app.state
        2. Yields it to the route handler
        3. On success: commits whatever is still pending
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns the connection to the pool)

    Writes normally commit earlier, inside unit_of_work(); the commit here
    only covers reads and is a no-op for them.
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── Transaction Scope ─────────────────────────────────────────────────────
@asynccontextmanager
async def unit_of_work(session: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Run a block of writes as a single transaction.

    Commits when the block completes. On any exception the whole transaction
    is rolled back, so no partial set of rows is ever visible to readers.
    SQLAlchemy errors are wrapped in DatabaseError carrying the operation
    name; application errors (ValidationError, UploadError, ...) propagate
    unchanged.

    Usage:
        async with unit_of_work(session, "create_recipe"):
            session.add(recipe)
            await session.flush()
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Transaction '%s' rolled back: %s", operation, e)
        raise DatabaseError(
            context={"operation": operation, "error_type": type(e).__name__},
        ) from e
    except Exception:
        await session.rollback()
        raise


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models(engine: AsyncEngine) -> None:
    """Create all tables from the ORM metadata (tests and db_create_all)."""
    # Registers every model with Base.metadata
    import potluck.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close all pooled connections during application shutdown."""
    await engine.dispose()
