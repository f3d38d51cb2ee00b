"""Async database engine and connection pool lifecycle.

The pool is owned by a ``Database`` instance that the application builds
once at startup and passes explicitly to whatever needs it. There is no
module-level engine, so tests can construct their own handle or replace the
store entirely.

Core functionality:
- **Connection pooling**: bounded pool with an explicit checkout timeout
- **Session factory**: ``async_sessionmaker`` handed to repositories
- **Health checks**: ``SELECT 1`` connectivity probe
- **Query monitoring**: optional slow query logging with sanitized parameters
"""

import time
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

from itemkit.core.config import DatabaseConfig, LogConfig
from itemkit.core.constants import MILLISECONDS_PER_SECOND
from itemkit.core.context import RequestContext
from itemkit.core.error_context import sanitize_sql_params
from itemkit.infrastructure.database.base import Base

POOL_RECYCLE_SECONDS = 3600
COMMAND_TIMEOUT_SECONDS = 60
MAX_LOGGED_STATEMENT_LENGTH = 500


def _register_query_listeners(engine: AsyncEngine, log_config: LogConfig) -> None:
    """Attach cursor listeners that warn about slow statements."""
    start_times: WeakKeyDictionary[ExecutionContext, float] = WeakKeyDictionary()
    threshold_ms = log_config.slow_query_threshold_ms

    def before_cursor_execute(
        _conn: Connection,
        _cursor: DBAPICursor,
        _statement: str,
        _parameters: Any,  # noqa: ANN401 - driver-specific parameter shape
        context: ExecutionContext,
        _executemany: bool,
    ) -> None:
        start_times[context] = time.perf_counter()

    def after_cursor_execute(
        _conn: Connection,
        cursor: DBAPICursor,
        statement: str,
        parameters: Any,  # noqa: ANN401 - driver-specific parameter shape
        context: ExecutionContext,
        executemany: bool,
    ) -> None:
        start_time = start_times.pop(context, None)
        if start_time is None:
            return

        duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
        if duration_ms < threshold_ms:
            return

        clean_statement = " ".join(statement.split())[:MAX_LOGGED_STATEMENT_LENGTH]
        rows_affected = getattr(cursor, "rowcount", -1)
        logger.warning(
            "Slow query detected: {}... Duration: {:.2f}ms",
            clean_statement[:100],
            duration_ms,
            query=clean_statement,
            duration_ms=round(duration_ms, 2),
            rows_affected=rows_affected if rows_affected is not None else -1,
            parameters=sanitize_sql_params(parameters),
            correlation_id=RequestContext.get_correlation_id(),
            executemany=executemany,
            threshold_ms=threshold_ms,
        )

    event.listen(engine.sync_engine, "before_cursor_execute", before_cursor_execute)
    event.listen(engine.sync_engine, "after_cursor_execute", after_cursor_execute)
    logger.info("Registered slow query listeners", threshold_ms=threshold_ms)


def create_database_engine(
    db_config: DatabaseConfig, log_config: LogConfig | None = None
) -> AsyncEngine:
    """Create an async SQLAlchemy engine with a bounded connection pool.

    ``pool_timeout`` is the wait policy for a saturated pool: a checkout that
    waits longer raises ``sqlalchemy.exc.TimeoutError``.

    Args:
        db_config: Database configuration.
        log_config: Logging configuration; enables slow query logging.

    Returns:
        AsyncEngine: Configured async engine instance.
    """
    engine = create_async_engine(
        db_config.database_url,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=db_config.pool_pre_ping,
        echo=db_config.echo,
        pool_recycle=POOL_RECYCLE_SECONDS,
        connect_args={
            "server_settings": {"jit": "off"},
            "command_timeout": COMMAND_TIMEOUT_SECONDS,
        },
    )

    if log_config is not None and log_config.enable_sql_logging:
        _register_query_listeners(engine, log_config)

    logger.info(
        "Created database engine - pool_size: {}, max_overflow: {}, pool_timeout: {}s",
        db_config.pool_size,
        db_config.max_overflow,
        db_config.pool_timeout,
    )
    return engine


class Database:
    """Handle on the connection pool shared by every repository.

    Args:
        engine: The async engine owning the pool.

    Example:
        database = Database.from_config(settings.database_config)
        repository = ItemRepository(database.session_factory)
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(
        cls, db_config: DatabaseConfig, log_config: LogConfig | None = None
    ) -> "Database":
        """Build the engine from configuration and wrap it."""
        return cls(create_database_engine(db_config, log_config))

    async def check_connection(self) -> tuple[bool, str | None]:
        """Check whether the database answers a trivial query.

        Returns:
            tuple[bool, str | None]: Success flag and the error message on
            failure.
        """
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                _ = result.scalar()
        except (SQLAlchemyError, OSError) as e:
            return False, str(e)
        else:
            return True, None

    async def create_schema(self) -> None:
        """Create every table of the shared metadata that does not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    async def close(self) -> None:
        """Dispose of the pool and close every pooled connection."""
        await self.engine.dispose()
        logger.info("Database engine disposed")
