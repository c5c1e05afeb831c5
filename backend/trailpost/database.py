"""
Trailpost Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that rolls back on error, and a commit helper for routes.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Unit of Work:
    Every request gets one session and therefore one transaction. Routes that
    write call `commit_session()` before they return, so the commit has
    succeeded (or surfaced as StoreError) before any response is sent. The
    dependency itself never commits; work left uncommitted is rolled back
    when the session closes.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from trailpost.config import settings
from trailpost.exceptions import StoreError

logger = logging.getLogger(__name__)


def build_engine(url: str) -> AsyncEngine:
    """
    Create the async engine for `url`.

    Pool sizing only applies to server databases; SQLite picks its own pool
    class and rejects the sizing arguments.
    """
    kwargs: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(url, **kwargs)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, which the
# response builders rely on
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model on one metadata object, which Alembic and
    `init_models()` read.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On error: rolls back the transaction
        4. Always: closes the session (returns connection to pool)

    Committing is the route's job (see `commit_session`). FastAPI runs the
    code after `yield` once the response has gone out, which is too late to
    report a failed commit to the caller.

    Raises:
        Any exception is re-raised for the global error handler.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def commit_session(session: AsyncSession) -> None:
    """
    Commit the request's transaction.

    Raises:
        StoreError: the commit failed; the transaction has been rolled back.
    """
    try:
        await session.commit()
    except SQLAlchemyError as e:
        logger.error("Commit failed: %s", str(e), exc_info=True)
        await session.rollback()
        raise StoreError(message="Could not save your changes. Please try again.")


# ── Set-Membership Helper ─────────────────────────────────────────────────
def insert_ignore(session: AsyncSession, table: Table, values: Dict[str, Any]):
    """
    Build an INSERT that silently skips rows violating the primary key.

    What:    Adds one member to a membership set (likes, saves, follows).
    Why:     Two concurrent adds of different members both land, and a
             repeated add of the same member is a no-op at the database, not
             a read-modify-write of a whole collection.
    Returns: An executable statement; its `rowcount` is 1 when a row was
             written and 0 when the member was already present.
    Raises:  StoreError on any dialect other than PostgreSQL or SQLite.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table)
    else:
        logger.error("insert_ignore called on unsupported dialect %s", dialect)
        raise StoreError(
            message="Database backend is not supported",
            context={"dialect": dialect, "table": table.name},
        )
    return stmt.values(**values).on_conflict_do_nothing()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models() -> None:
    """
    What:  Creates any missing tables from the ORM metadata.
    When:  At startup when DB_AUTO_CREATE is set (local development only).
    """
    import trailpost.models  # noqa: F401  (registers all tables)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
