"""Database dependency injection for FastAPI.

Provides the async session factory for record access with lazy engine
creation and connection pooling.
"""

from __future__ import annotations

import threading

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_write_engine
from infrastructure.database.models import Base
from infrastructure.document_store.models import RecordModel  # noqa: F401 - registers the table
from infrastructure.observability import DefaultConnectionProbe
from infrastructure.settings import get_database_settings

# Module-level probe for observability
_probe = DefaultConnectionProbe()

# Module-level engine instance (created on first use)
_write_engine: AsyncEngine | None = None

# Module-level sessionmaker instance (created with the engine)
_write_sessionmaker: async_sessionmaker[AsyncSession] | None = None

# Thread lock for safe engine initialization
_engine_lock = threading.Lock()


def get_write_engine() -> AsyncEngine:
    """Get the database engine (singleton).

    Creates engine on first call and caches for subsequent calls.
    Uses double-check locking for thread-safe initialization.
    Also creates and caches the sessionmaker for efficient session creation.

    Returns:
        Configured async engine
    """
    global _write_engine, _write_sessionmaker
    if _write_engine is None:
        with _engine_lock:
            # Double-check after acquiring lock
            if _write_engine is None:
                settings = get_database_settings()
                _write_engine = create_write_engine(settings)
                _write_sessionmaker = async_sessionmaker(
                    _write_engine,
                    expire_on_commit=False,
                    class_=AsyncSession,
                )
                _probe.engine_created(
                    connection_string=settings.connection_string,
                    pool_size=settings.pool_max_connections,
                )
    return _write_engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the cached sessionmaker, creating the engine if needed."""
    get_write_engine()
    assert _write_sessionmaker is not None
    return _write_sessionmaker


async def ensure_schema() -> None:
    """Create the record tables if they do not exist.

    Intended for development databases. Production schemas are managed
    outside the application.
    """
    engine = get_write_engine()
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    _probe.schema_ensured(tables=sorted(Base.metadata.tables))


async def close_database_connections() -> None:
    """Close all database engine connections.

    Should be called on application shutdown to properly cleanup connections.
    Also resets the sessionmaker to allow reinitialization.
    """
    global _write_engine, _write_sessionmaker

    if _write_engine is not None:
        await _write_engine.dispose()
        _probe.pool_closed()
        _write_engine = None
        _write_sessionmaker = None
