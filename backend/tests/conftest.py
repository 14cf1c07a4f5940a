"""
Pytest configuration and shared fixtures.

Tests that need Postgres use the `db` / `client` fixtures and are skipped when
the test database is unreachable. The schema comes from the numbered .sql
migrations; every test runs inside an outer transaction that is rolled back,
route commits only release savepoints.
"""
from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from app.core.config import settings
from app.core.security import create_access_token, hash_password
from app.db.migrate import MigrationRunner
from app.db.models.auth import User
from app.db.session import get_db
from app.main import create_app

# psycopg needs the selector event loop on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


def _test_database_url() -> str:
    url = os.getenv("TEST_DATABASE_URL")
    if url:
        return url
    db_host = os.getenv("TEST_DB_HOST", "localhost")
    db_port = os.getenv("TEST_DB_PORT", "5432")
    db_name = os.getenv("TEST_DB_NAME", "dashboard_test")
    db_user = os.getenv("TEST_DB_USER", "postgres")
    db_password = os.getenv("TEST_DB_PASSWORD", "postgres")
    return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


@pytest.fixture
def auth_header() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for any role without touching the database."""

    def _make(role: str, username: str | None = None, user_id: int = 1) -> dict[str, str]:
        token = create_access_token(user_id, username or role, role)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(_test_database_url(), echo=False)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, DBAPIError) as exc:
        await engine.dispose()
        pytest.skip(f"Test database is not available: {exc}")

    await MigrationRunner(engine, settings.migrations_dir).run()
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def db(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with db_engine.connect() as conn:
        transaction = await conn.begin()
        session = AsyncSession(
            bind=conn,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )
        try:
            yield session
        finally:
            await session.close()
            if transaction.is_active:
                await transaction.rollback()


@pytest.fixture
def app():
    return create_app(use_lifespan=False)


@pytest.fixture
async def client(app, db: AsyncSession) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client whose requests share the test session."""

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def offline_client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for requests that must be answered before any query runs."""

    async def _no_db() -> AsyncGenerator[None, None]:
        yield None

    app.dependency_overrides[get_db] = _no_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def make_user(db: AsyncSession) -> Callable[..., object]:
    async def _make(username: str, role: str, password: str = "secret123") -> User:
        user = User(username=username, password_hash=hash_password(password), role=role)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make


@pytest.fixture
async def user_header(make_user, auth_header) -> Callable[..., object]:
    """Create a real user (for FK columns such as changed_by) and return its header."""

    async def _make(role: str, username: str | None = None) -> dict[str, str]:
        user = await make_user(username or f"{role}_tester", role)
        return auth_header(role, user.username, user.id)

    return _make
