"""Fixtures for integration tests.

These tests require a dedicated PostgreSQL database named by
TEST_DATABASE_URL. Each test creates the schema and drops it afterwards.
Tests are skipped when the variable is unset or the database is unreachable.

To run integration tests:
    TEST_DATABASE_URL=postgresql+asyncpg://... uv run pytest tests/integration -v

To run only unit tests (faster, no database required):
    uv run pytest tests/unit -v
"""

import os
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from lobbyhub.db.models import Base
from lobbyhub.db.repositories.lobbies import SqlLobbyStore
from lobbyhub.db.session import create_session_factory
from lobbyhub.lobby.coordinator import LobbyCoordinator
from lobbyhub.lobby.models import LobbyConfig


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require database)"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark all tests in this directory as integration tests."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
async def pg_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Provide an engine on the configured PostgreSQL database.

    A fresh engine per test avoids event loop issues with shared pools.
    """
    database_url = os.environ.get("TEST_DATABASE_URL", "")
    if not database_url.startswith("postgresql"):
        pytest.skip("TEST_DATABASE_URL is not set to a PostgreSQL database")

    engine = create_async_engine(database_url, echo=False, pool_pre_ping=True, pool_size=10)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (SQLAlchemyError, OSError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def pg_coordinator(pg_engine: AsyncEngine) -> LobbyCoordinator:
    return LobbyCoordinator(SqlLobbyStore(create_session_factory(pg_engine)), LobbyConfig())
