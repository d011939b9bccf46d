"""Test configuration and fixtures."""

import os

# Set environment variables before importing application code
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CACHE_ENABLED"] = "false"
os.environ["SUPABASE_URL"] = "https://storage.test"
os.environ["SUPABASE_KEY"] = "test-anon-key"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.database import Database
from app.main import app
from app.models import User
from app.services.storage_service import get_image_store

from helpers import FakeImageStore, create_user

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def database():
    """Fresh in-memory database per test."""
    db = Database(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    """Single session for service-level tests."""
    async with database.session_factory() as db_session:
        yield db_session


@pytest.fixture
def image_store() -> FakeImageStore:
    return FakeImageStore()


@pytest_asyncio.fixture
async def client(database, image_store):
    """HTTP client against the app, wired to the test database and fake store."""
    app.state.database = database
    app.dependency_overrides[get_image_store] = lambda: image_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============== Users ==============

@pytest_asyncio.fixture
async def artist(database) -> User:
    return await create_user(database, "painter", role="artist", artist_name="The Painter")


@pytest_asyncio.fixture
async def other_artist(database) -> User:
    return await create_user(database, "sculptor", role="artist", first_name="Ada", last_name="Stone")


@pytest_asyncio.fixture
async def admin(database) -> User:
    return await create_user(database, "curator", role="admin")


@pytest_asyncio.fixture
async def buyer(database) -> User:
    return await create_user(database, "collector", role="buyer")
