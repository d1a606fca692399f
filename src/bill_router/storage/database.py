"""SQLAlchemy async engine and session factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bill_router.exceptions import ConfigurationError
from bill_router.storage.models import Base

_engine = None
_session_factory = None


def is_configured() -> bool:
    return _session_factory is not None


def init_db(database_url: str):
    """Initialise the async engine and session factory.

    Must be called once at application startup before any database access.
    SQLite URLs (used in tests) get the default pool.
    """
    global _engine, _session_factory
    if not database_url:
        raise ConfigurationError("database_url is empty; the endpoint store is disabled")
    if database_url.startswith("sqlite"):
        _engine = create_async_engine(database_url)
    else:
        _engine = create_async_engine(database_url, pool_size=10, max_overflow=20)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)


async def create_tables():
    """Create the ``api_configs`` table if missing (local runs and tests)."""
    if _engine is None:
        raise ConfigurationError("Database not initialised")
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncSession:
    """FastAPI-compatible dependency that yields an ``AsyncSession``."""
    if _session_factory is None:
        raise ConfigurationError("Database not initialised")
    async with _session_factory() as session:
        yield session


@asynccontextmanager
async def AsyncSessionLocal():
    """Open a session from the global factory.

    Usage:
        async with AsyncSessionLocal() as session:
            # use session
    """
    if _session_factory is None:
        raise ConfigurationError("Database not initialised")
    async with _session_factory() as session:
        yield session


async def close_db():
    """Dispose of the engine connection pool.  Call at shutdown."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
    _engine = None
    _session_factory = None
