"""Lazily created async engine, session factory and the session scope used by the CLI."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, pool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from feedback_sync.config import get_settings
from feedback_sync.db.models import Base
from feedback_sync.logging import get_logger

logger = get_logger(__name__)

# Created on first use; reset by dispose_engine()
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None
_database_url: str | None = None

# Failure recording writes from its own session while a push may hold the lock
SQLITE_BUSY_TIMEOUT_MS = 5000


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _configure_sqlite(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    cursor.close()


def get_engine() -> AsyncEngine:
    """Get or create the async SQLAlchemy engine.

    SQLite gets NullPool plus foreign key and busy-timeout pragmas on
    every connection; other backends use the default pool.
    """
    global _engine
    if _engine is None:
        url = _database_url or get_settings().database_url
        if _is_sqlite(url):
            _engine = create_async_engine(url, poolclass=pool.NullPool)
            event.listen(_engine.sync_engine, "connect", _configure_sqlite)
        else:
            _engine = create_async_engine(url, pool_pre_ping=True)
        logger.debug("Database engine created for {}", _engine.url.render_as_string())
    return _engine


def use_database(url: str | None) -> None:
    """Override the configured database URL for engines created from now on.

    Must be called before the first session; an existing engine is not
    replaced. Pass None to go back to ``Settings.database_url``.
    """
    global _database_url
    _database_url = url


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the current engine, created on first use."""
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on success and rolls back on error.

    Usage:
        async with get_session() as session:
            dispatcher = SyncDispatcher(session, adapters)
            await dispatcher.push_one(Provider.TRELLO, project_id, feedback_id)
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.debug("Rolling back session: {}", type(e).__name__)
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create all tables (migrations are managed outside this package)."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Dispose the engine and forget the cached factory."""
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None
