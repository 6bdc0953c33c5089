"""Async SQLAlchemy engine and sessions for the user store.

One ``DatabaseManager`` per process owns the engine. Request handlers get a
session from ``get_db_session``; the auth service decides when it commits.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncGenerator

from sqlalchemy import DateTime, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from latchkey.core.config import Settings, get_settings
from latchkey.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for latchkey models.

    Every ``datetime`` column is timezone aware.
    """

    type_annotation_map = {datetime: DateTime(timezone=True)}


def engine_options(settings: Settings) -> dict[str, Any]:
    """Engine keyword arguments for the configured backend."""
    options: dict[str, Any] = {"echo": settings.db_echo}
    if make_url(settings.database_url).get_backend_name() == "sqlite":
        # Concurrent writers wait for the lock instead of failing immediately
        options["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.db_busy_timeout_seconds,
        }
    else:
        options["pool_pre_ping"] = True
    return options


def sqlite_directory(database_url: str) -> Path | None:
    """Directory holding a file-backed SQLite database, if that is the backend."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
        return None
    return Path(url.database).parent


class DatabaseManager:
    """Owns the async engine and hands out sessions."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.engine = create_async_engine(self.settings.database_url, **engine_options(self.settings))
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database engine created",
            database_url=self.engine.url.render_as_string(hide_password=True),
        )

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop every table. Deletes all users."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database tables dropped")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that is rolled back if the caller fails or is cancelled.

        Committing is left to the caller.
        """
        async with self.session_factory() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Database ping failed", error=str(e))
            return False
        return True


_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    """Get the process-wide database manager, creating it on first use."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with get_db_manager().session() as session:
        yield session


async def init_database() -> None:
    """Open the database on startup.

    Creates the SQLite directory if needed, checks connectivity and creates
    tables outside production.
    """
    # Register models with Base.metadata before create_all
    from latchkey.infrastructure.persistence.models import UserModel  # noqa: F401

    db = get_db_manager()

    directory = sqlite_directory(db.settings.database_url)
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)

    if not await db.ping():
        raise RuntimeError("Failed to connect to database")

    if db.settings.is_production:
        logger.info("Production mode: skipping table creation")
    else:
        await db.create_tables()


async def close_database() -> None:
    """Dispose of the engine on shutdown."""
    global _db_manager
    if _db_manager is not None:
        await _db_manager.dispose()
        _db_manager = None
