"""Pytest configuration and fixtures."""

import os

# Disable rate limiting for all tests
os.environ["RATE_LIMITING_ENABLED"] = "false"

# Clear the settings cache to pick up the new environment variable
from lobbyhub.settings import Settings, get_settings

get_settings.cache_clear()

import uuid  # noqa: E402
from collections.abc import AsyncGenerator, Callable  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lobbyhub.db.models import Base  # noqa: E402
from lobbyhub.db.repositories.lobbies import SqlLobbyStore  # noqa: E402
from lobbyhub.db.session import create_session_factory  # noqa: E402
from lobbyhub.lobby.coordinator import LobbyCoordinator  # noqa: E402
from lobbyhub.lobby.models import Caller, LobbyConfig  # noqa: E402
from lobbyhub.main import create_app  # noqa: E402


def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'lobbyhub.db'}"


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Provide a fresh SQLite database with the schema created."""
    engine = create_async_engine(sqlite_url(tmp_path), echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SqlLobbyStore:
    return SqlLobbyStore(session_factory)


@pytest.fixture
def coordinator(store: SqlLobbyStore) -> LobbyCoordinator:
    return LobbyCoordinator(store, LobbyConfig())


@pytest.fixture
def make_caller() -> Callable[[str], Caller]:
    """Factory for callers with fresh user IDs."""

    def _make(username: str) -> Caller:
        return Caller(user_id=uuid.uuid4(), username=username)

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a per-test SQLite database."""
    return Settings(
        _env_file=None,
        database_url=sqlite_url(tmp_path),
        rate_limiting_enabled=False,
        dev_mode=True,
    )


@pytest.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI, None]:
    """Create an application with its schema in place."""
    app = create_app(settings)
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield app

    await app.state.engine.dispose()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
