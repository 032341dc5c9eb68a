"""
Database Store Handle

Owns the async SQLAlchemy engine and session factory. A Store is created
and opened at process start, injected into the repositories, and closed at
shutdown by the caller.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from console_core.config import Settings, get_settings
from console_core.models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """Shared relational store handle."""

    def __init__(self, database_url: str, *, echo: bool = False, **engine_options: Any):
        self.database_url = database_url
        self._echo = echo
        self._engine_options = engine_options
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Store":
        """Build a store with pooled connections (tuned for production)."""
        settings = settings or get_settings()
        return cls(
            settings.database_url,
            echo=settings.debug,
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Store is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        """Create the engine. The connection pool itself is lazy."""
        if self._engine is not None:
            return
        self._engine = create_async_engine(
            self.database_url,
            echo=self._echo,
            **self._engine_options,
        )
        if self._engine.dialect.name == "sqlite":
            # Ownership cleanup relies on ON DELETE CASCADE
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(f"Store opened: {self._engine.url.render_as_string(hide_password=True)}")

    async def close(self) -> None:
        """Dispose the engine and its connection pool."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Store closed")

    async def create_all(self) -> None:
        """Create all tables. Used by tests and local bootstrap; production uses Alembic."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Short-lived session for a single repository request.

        Commits on success, rolls back and re-raises on any error.
        """
        if self._session_factory is None:
            raise RuntimeError("Store is not open")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
