import os
from collections.abc import AsyncIterator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from entity_crud.db.session import Base, get_db
from entity_crud.dependencies import USER_ID_HEADER
from entity_crud.main import app
from tests.factories import USER_ID

# Fixtures defined in other modules (like tests/seeds.py) are only visible
# to pytest when registered here.
pytest_plugins = ["tests.seeds"]

# In-memory SQLite by default; point at a Postgres test database with e.g.
# TEST_DATABASE_URL=postgresql+asyncpg://entity_crud@localhost:5432/entity_crud_test
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

engine = create_async_engine(
    TEST_DATABASE_URL,
    # A single shared connection keeps the in-memory database alive across sessions
    poolclass=StaticPool if TEST_DATABASE_URL.startswith("sqlite") else NullPool,
)
async_session = async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db() -> AsyncIterator[AsyncSession]:
    """Create tables and yield a session, then drop tables after test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncIterator[AsyncClient]:
    """HTTP client that uses the test database session and a signed-in user."""

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={USER_ID_HEADER: str(USER_ID)},
    ) as client:
        yield client

    app.dependency_overrides.clear()
