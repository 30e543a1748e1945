"""
Database connection management.

Builds the async engine and the session factory the orchestrator shares
between the API, the runner loop and the monitors.

Dependencies: sqlalchemy, ai_orchestrator.configs
System role: Database connection lifecycle management
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from ai_orchestrator.configs import DatabaseSettings, get_settings


def get_async_engine(settings: DatabaseSettings | None = None) -> AsyncEngine:
    """
    Create the pooled async engine.

    Args:
        settings: Database settings (defaults to the application settings)

    Returns:
        AsyncEngine: Engine; the caller disposes it on shutdown
    """
    db_config = settings or get_settings().database
    return create_async_engine(db_config.async_database_url, **db_config.engine_options())


def get_async_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker:
    """
    Create the session factory used for every unit of work.

    expire_on_commit=False keeps job rows readable after commit, since
    background tasks hand rows across session boundaries.

    Usage:
        factory = get_async_session_factory(engine)
        async with factory() as session:
            ...
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine or get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )
