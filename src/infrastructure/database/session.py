"""Async database engine and session lifecycle management.

The SQL settings stores run on a single async engine per process:

- **PostgreSQL** (asyncpg): pooled connections with pre-ping, recycling and
  a command timeout
- **SQLite** (aiosqlite): the default pool of the dialect; used for local
  development and tests

Slow statements are reported through Loguru when SQL logging is enabled.
The module uses a singleton through :class:`_DatabaseManager` so every
store shares one connection pool.
"""

import threading
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from weakref import WeakKeyDictionary

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.engine.interfaces import DBAPICursor, ExecutionContext
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.config import get_settings
from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.context import RequestContext
from src.infrastructure.constants import (
    COMMAND_TIMEOUT_SECONDS,
    MAX_LOGGED_STATEMENT_LENGTH,
    POOL_RECYCLE_SECONDS,
)

# Store query start times for execution contexts
_query_start_times: WeakKeyDictionary[ExecutionContext, float] = WeakKeyDictionary()


def _before_cursor_execute(
    _conn: Connection,
    _cursor: DBAPICursor,
    _statement: str,
    _parameters: object,
    context: ExecutionContext,
    _executemany: bool,
) -> None:
    """Track query start time for performance monitoring."""
    _query_start_times[context] = time.perf_counter()


def _after_cursor_execute(
    _conn: Connection,
    _cursor: DBAPICursor,
    statement: str,
    _parameters: object,
    context: ExecutionContext,
    executemany: bool,
) -> None:
    """Log statements slower than the configured threshold.

    Parameters are never logged: settings values may contain arbitrary
    HTML and data URIs.
    """
    start_time = _query_start_times.pop(context, None)
    if start_time is None:
        return

    duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
    threshold_ms = get_settings().log_config.slow_query_threshold_ms
    if duration_ms < threshold_ms:
        return

    clean_statement = " ".join(statement.split())[:MAX_LOGGED_STATEMENT_LENGTH]
    logger.warning(
        "Slow query detected: {}... Duration: {:.2f}ms",
        clean_statement[:100],
        duration_ms,
        query=clean_statement,
        duration_ms=round(duration_ms, 2),
        correlation_id=RequestContext.get_correlation_id(),
        executemany=executemany,
        threshold_ms=threshold_ms,
    )


def create_database_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async SQLAlchemy engine for the configured database.

    Args:
        database_url: Optional database URL. If not provided, uses the
            configured database URL from settings.

    Returns:
        AsyncEngine: Configured async engine instance.
    """
    settings = get_settings()
    db_config = settings.database_config
    url = database_url or db_config.database_url

    engine_options: dict[str, Any] = {"echo": db_config.echo}
    if not url.startswith("sqlite"):
        engine_options.update(
            pool_size=db_config.pool_size,
            max_overflow=db_config.max_overflow,
            pool_timeout=db_config.pool_timeout,
            pool_pre_ping=True,
            pool_recycle=POOL_RECYCLE_SECONDS,
            connect_args={"command_timeout": COMMAND_TIMEOUT_SECONDS},
        )

    engine = create_async_engine(url, **engine_options)

    if settings.log_config.enable_sql_logging:
        sync_engine = engine.sync_engine
        event.listen(sync_engine, "before_cursor_execute", _before_cursor_execute)
        event.listen(sync_engine, "after_cursor_execute", _after_cursor_execute)
        logger.info("Registered slow query event listeners")

    logger.info(
        "Created database engine",
        dialect=engine.dialect.name,
        sql_logging=settings.log_config.enable_sql_logging,
    )
    return engine


class _DatabaseManager:
    """Internal class to manage database engine and session factory instances.

    This class provides a singleton pattern without using global statements.
    """

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._async_session_factory: async_sessionmaker[AsyncSession] | None = None
        self._lock = threading.Lock()

    def get_engine(self) -> AsyncEngine:
        """Get or create the async engine instance."""
        if self._engine is None:
            with self._lock:
                if self._engine is None:
                    self._engine = create_database_engine()
        return self._engine

    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the async session factory."""
        if self._async_session_factory is None:
            with self._lock:
                if self._async_session_factory is None:
                    self._async_session_factory = create_session_factory(
                        self.get_engine()
                    )
                    logger.info("Created async session factory")
        return self._async_session_factory

    async def close(self) -> None:
        """Close the database engine and cleanup connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
            self._engine = None
            self._async_session_factory = None


# Singleton instance
_db_manager = _DatabaseManager()


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory bound to ``engine``."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    """Get or create the global async engine instance."""
    return _db_manager.get_engine()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the global async session factory."""
    return _db_manager.get_session_factory()


@asynccontextmanager
async def get_async_session(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession]:
    """Get an async database session with automatic cleanup.

    The session is committed when the block exits normally and rolled back
    when it raises.

    Args:
        session_factory: Factory to open the session from. Defaults to the
            global factory.

    Yields:
        AsyncGenerator[AsyncSession]: Database session for performing operations.

    Example:
        async with get_async_session() as session:
            entries = await ContentEntryRepository(session).list_for_collection(key)
    """
    factory = session_factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.debug("Database session rolled back due to error")
            raise


async def close_database() -> None:
    """Dispose of the global engine (application shutdown)."""
    await _db_manager.close()


async def check_database_connection(
    engine: AsyncEngine | None = None,
) -> tuple[bool, str | None]:
    """Check if the database answers a trivial query.

    Returns:
        tuple[bool, str | None]: Success flag and the error message on failure.
    """
    try:
        async with (engine or get_engine()).connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            _ = result.scalar()
    except (SQLAlchemyError, OSError) as e:
        return False, str(e)
    else:
        return True, None
