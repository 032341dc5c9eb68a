"""
Test Configuration and Fixtures

Provides an isolated store per test and repository fixtures.
"""

import os
from collections.abc import AsyncGenerator

import pytest_asyncio
from sqlalchemy.pool import StaticPool

from console_core.db.store import Store
from console_core.models.group import Group
from console_core.models.user import User
from console_core.services.user_repository import UserRepository
from console_core.services.view_repository import ViewRepository
from tests.factories import make_group, make_user

# In-memory SQLite by default; point at a Postgres test database to run
# against the production dialect.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


def _make_store() -> Store:
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection, otherwise every session sees its own empty database
        return Store(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return Store(TEST_DATABASE_URL)


@pytest_asyncio.fixture(scope="function")
async def store() -> AsyncGenerator[Store, None]:
    """Provide a clean schema for each test."""
    store = _make_store()
    store.open()
    await store.create_all()

    yield store

    await store.drop_all()
    await store.close()


@pytest_asyncio.fixture
async def users(store: Store) -> UserRepository:
    return UserRepository(store)


@pytest_asyncio.fixture
async def views(store: Store) -> ViewRepository:
    return ViewRepository(store)


@pytest_asyncio.fixture
async def test_user(users: UserRepository) -> User:
    """Create a persisted regular user."""
    return await users.create(
        make_user(
            email="Jane.Doe@Example.com",
            company="Example Corp",
            department="Security",
            name="Jane",
            surname="Doe",
        )
    )


@pytest_asyncio.fixture
async def test_group(store: Store) -> Group:
    """Create a persisted group."""
    group = make_group(name="Production Network")
    async with store.session() as session:
        session.add(group)
        await session.flush()
    return group
