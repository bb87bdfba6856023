"""
Database Configuration.

SQLAlchemy async engine and session management.

The engine lives in an explicitly constructed ``Database`` handle that the
FastAPI lifespan opens at startup, stores on ``app.state.database`` and
disposes at shutdown. Request handlers reach it through the
``get_db_session`` dependency; nothing holds a module-level engine.
"""

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from notegraph.backend.core.config_schema import DatabaseSchema
from notegraph.backend.core.exceptions import InternalError
from notegraph.backend.core.logging import get_logger

logger = get_logger(__name__)


def _on_sqlite_connect(dbapi_connection: Any, connection_record: Any) -> None:
    # The driver must not issue its own BEGIN, or SAVEPOINT releases commit early
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn: Any) -> None:
    conn.exec_driver_sql("BEGIN")


def configure_sqlite(engine: AsyncEngine) -> None:
    """
    Make SQLite behave like the production database.

    Foreign keys (and so ON DELETE CASCADE) are switched on per connection,
    and transactions are begun explicitly so that nested SAVEPOINTs work.
    """
    event.listen(engine.sync_engine, "connect", _on_sqlite_connect)
    event.listen(engine.sync_engine, "begin", _on_sqlite_begin)


def create_engine_from_config(url: str, db_config: DatabaseSchema | None = None) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine.

    Pool settings from database.yaml apply to server databases only;
    SQLite is configured by ``configure_sqlite`` instead.
    """
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=db_config.echo if db_config else False)
        configure_sqlite(engine)
        return engine

    if db_config is None:
        return create_async_engine(url)

    return create_async_engine(
        url,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_recycle=db_config.pool_recycle,
        echo=db_config.echo,
        echo_pool=db_config.echo_pool,
        pool_pre_ping=True,
    )


class Database:
    """
    Storage client handle with an explicit lifecycle.

    Usage:
        database = Database.from_config()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls) -> "Database":
        """Build the handle from database.yaml and config/.env."""
        from notegraph.backend.core.config import get_app_config, get_database_url

        db_config = get_app_config().database
        engine = create_engine_from_config(get_database_url(), db_config)
        logger.info(
            "Database engine created",
            extra={"dialect": engine.dialect.name, "host": db_config.host},
        )
        return cls(engine)

    def session(self) -> AsyncSession:
        """Open a new session. Use as an async context manager."""
        return self.session_factory()

    async def create_all(self) -> None:
        """Create all tables (development and tests; production uses Alembic)."""
        from notegraph.backend.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database engine disposed")


def get_database(request: Request) -> Database:
    """Return the handle opened by the application lifespan."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise InternalError("Database is not initialized")
    return database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Commits when the request handler succeeds, rolls back otherwise.

    Usage in endpoints:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database = get_database(request)
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
