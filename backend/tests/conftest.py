"""
Trailpost Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Services run against a fresh in-memory SQLite database per test
       (aiosqlite + StaticPool so every session shares one connection).
       API tests talk to the FastAPI app through HTTPX's ASGITransport with
       the database dependency pointed at that same database.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine: in-memory database with all tables created
    ├── db_session: AsyncSession bound to db_engine
    ├── make_user: factory inserting users directly
    ├── make_post: factory inserting posts directly
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── temp_storage: Temporary directory for file operations
    ├── sample_image_bytes: Fake image content for upload tests
    ├── test_client: HTTPX AsyncClient for API endpoint testing
    └── failing_commits: switches test_client to sessions whose commit fails
"""

import os
import tempfile

# Settings are read when trailpost is first imported, so the environment
# has to be in place before any trailpost import below.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-0123456789"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="trailpost_test_")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import trailpost.models  # noqa: F401
from trailpost.database import Base, get_db_session
from trailpost.models.post import Post
from trailpost.models.user import User


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    A session for service-level tests.

    Services only flush; tests that need a second session to observe the
    result call `await db_session.commit()` themselves.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """
    Insert a user directly, skipping password hashing.

    Usage:
        alice = await make_user("alice", bio="hiking")
    """
    async def _make_user(username: str, **fields) -> User:
        fields.setdefault("email", f"{username}@example.com")
        fields.setdefault("password_hash", "not-a-real-hash")
        user = User(username=username, **fields)
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest.fixture
def make_post(db_session):
    """
    Insert a post directly with an explicit timestamp.

    Usage:
        post = await make_post(alice, "hello", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    """
    async def _make_post(author: User, text: str = "post", **fields) -> Post:
        fields.setdefault("created_at", datetime.now(timezone.utc))
        post = Post(author_id=author.id, text=text, **fields)
        db_session.add(post)
        await db_session.flush()
        return post

    return _make_post


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_store_failure(mock_db_session):
            mock_db_session.flush.side_effect = SQLAlchemyError("boom")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# File Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage directory for each test (pytest cleans it up)."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """
    Minimal JPEG bytes for upload tests.

    SOI marker + JFIF header + EOI marker; not a real photograph.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient wired to the app, with each request getting its own
    session on the test database. Like production, routes commit their own
    writes; the override only rolls back on error.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from trailpost.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


class FailingCommitSession(AsyncSession):
    """An AsyncSession whose commit always fails, as on a lost connection."""

    async def commit(self) -> None:
        raise OperationalError("COMMIT", {}, Exception("database is locked"))


@pytest.fixture
def failing_commits(db_engine):
    """
    Context manager that points test_client at sessions whose commit fails,
    restoring the normal sessions on exit.

    Usage:
        with failing_commits():
            response = await test_client.post(...)
    """
    from trailpost.main import app

    factory = async_sessionmaker(db_engine, class_=FailingCommitSession, expire_on_commit=False)

    async def override_get_db_session():
        async with factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    @contextmanager
    def _failing_commits():
        previous = app.dependency_overrides.get(get_db_session)
        app.dependency_overrides[get_db_session] = override_get_db_session
        try:
            yield
        finally:
            if previous is None:
                app.dependency_overrides.pop(get_db_session, None)
            else:
                app.dependency_overrides[get_db_session] = previous

    return _failing_commits
