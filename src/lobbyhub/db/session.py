"""Database session management."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lobbyhub.settings import Settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database."""
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine.

    Usage:
        async with session_factory() as session, session.begin():
            # use session; commits on exit, rolls back on error
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
