"""Pytest fixtures for testing."""
import os

# Must be set before any app import that builds Settings or the engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["DEV_MODE"] = "false"

from collections.abc import AsyncGenerator, Generator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from models.base import Base  # noqa: E402
from models.profile import Profile  # noqa: E402
from models.user import User  # noqa: E402
from services.auth_service import hash_password  # noqa: E402

TEST_PASSWORD = "correct-horse"

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session")
def database_url() -> Generator[str]:
    """
    Database the tests run against.

    In-memory SQLite by default. Set TEST_DATABASE=postgres to run the same
    tests against a throwaway PostgreSQL container instead.
    """
    if os.environ.get("TEST_DATABASE") != "postgres":
        yield SQLITE_MEMORY_URL
        return

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer("postgres:16", driver="asyncpg") as postgres:
        yield postgres.get_connection_url()


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:  # noqa: ANN001
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine]:
    """Create an async engine with a fresh schema for each test."""
    if database_url.startswith("sqlite"):
        # One shared connection, otherwise every connection gets its own empty database
        engine = create_async_engine(
            database_url,
            echo=False,
            poolclass=StaticPool,
        )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Create an async session for a test. The schema is dropped afterwards."""
    async with session_factory() as session:
        yield session


async def make_user(
    db_session: AsyncSession,
    email: str,
    username: str | None,
    password: str = TEST_PASSWORD,
) -> User:
    """Create a user with a profile, flushed but not committed."""
    user = User(email=email, password_hash=hash_password(password))
    db_session.add(user)
    await db_session.flush()
    db_session.add(Profile(user_id=user.id, username=username))
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
def test_password() -> str:
    """Password every fixture user signs in with."""
    return TEST_PASSWORD


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create the main test user ('alice')."""
    return await make_user(db_session, "alice@example.com", "alice")


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Create a second user ('bob') for isolation tests."""
    return await make_user(db_session, "bob@example.com", "bob")


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """Create an anonymous test client with database session override."""
    # Clear the settings cache so it picks up the test environment
    from core.config import get_settings

    get_settings.cache_clear()

    from api.main import app
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
