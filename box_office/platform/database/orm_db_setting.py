"""
SQLAlchemy async engine and session management

This module provides:
1. AsyncEngineManager: owns one engine per event loop for a database URL
2. Base: declarative base every ORM model inherits from
3. Database: DI-friendly facade handing out sessions and session makers

PostgreSQL (asyncpg) is the production store. SQLite (aiosqlite) is used for
local runs and the integration test suite; it gets WAL + busy_timeout pragmas
so that concurrent checkouts queue on the write lock instead of failing.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from box_office.platform.config.core_setting import settings
from box_office.platform.logging.loguru_io import Logger


# =============================================================================
# Event-loop-aware Engine Manager
# =============================================================================


class AsyncEngineManager:
    """
    Manages a SQLAlchemy async engine with event loop awareness.

    Ensures the engine is always bound to the current event loop to prevent
    "Task got Future attached to a different loop" errors (pytest-asyncio
    creates a fresh loop per test).
    """

    def __init__(self, *, url: str | None = None) -> None:
        self._url = url or settings.DATABASE_URL_ASYNC
        self._engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_sqlite(self) -> bool:
        return self._url.startswith('sqlite')

    def get_engine(self) -> AsyncEngine:
        """Get engine for current event loop, creating new one if needed"""
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop running, create engine without loop tracking
            if self._engine is None:
                self._engine = self._create_engine()
            return self._engine

        if self._loop is not current_loop:
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, dropping old engine...')
                # dispose() is async; the old pool is garbage collected instead
                self._session_maker = None

            Logger.base.info(f'🔗 [DB] Creating engine for event loop {id(current_loop)}')
            self._engine = self._create_engine()
            self._loop = current_loop

        return self._engine  # type: ignore[return-value]

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        """Get session maker for current event loop"""
        engine = self.get_engine()
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_maker

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._loop = None
        self._session_maker = None

    def _create_engine(self) -> AsyncEngine:
        kw: dict[str, Any] = {'echo': False, 'future': True}
        if not self.is_sqlite:
            kw.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_POOL_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=settings.DB_POOL_PRE_PING,
            )

        engine = create_async_engine(self._url, **kw)

        if self.is_sqlite:

            @event.listens_for(engine.sync_engine, 'connect')
            def _sqlite_pragmas(dbapi_connection: Any, _: Any) -> None:
                cur = dbapi_connection.cursor()
                cur.execute('PRAGMA journal_mode=WAL;')
                cur.execute('PRAGMA busy_timeout=5000;')
                cur.execute('PRAGMA synchronous=NORMAL;')
                cur.execute('PRAGMA foreign_keys=ON;')
                cur.close()

        return engine


# Global engine manager
_engine_manager = AsyncEngineManager()


def get_engine() -> AsyncEngine:
    return _engine_manager.get_engine()


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return _engine_manager.get_session_maker()


# =============================================================================
# Base Model
# =============================================================================


class Base(DeclarativeBase):
    pass


# =============================================================================
# Table Creation
# =============================================================================


async def create_db_and_tables(*, engine_manager: AsyncEngineManager | None = None) -> None:
    """Create database tables if they don't exist"""
    # Register every model on Base.metadata
    import box_office.service.marketplace.driven_adapter.model  # noqa: F401

    manager = engine_manager or _engine_manager
    try:
        async with manager.get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    except Exception as e:
        error_msg = str(e).lower()
        if any(
            keyword in error_msg
            for keyword in ['already exists', 'duplicate key', 'unique constraint']
        ):
            Logger.base.info('Tables already exist, skipping creation')
        else:
            Logger.base.error(f'Error creating tables: {e}')
            raise


# =============================================================================
# Database Class (for DI)
# =============================================================================


class Database:
    """
    Database facade for the dependency injection container

    Delegates to AsyncEngineManager for event-loop-aware engine management.
    Tests pass their own manager pointed at a temporary SQLite file.
    """

    def __init__(self, *, engine_manager: AsyncEngineManager | None = None) -> None:
        self._engine_manager = engine_manager or _engine_manager

    @property
    def engine_manager(self) -> AsyncEngineManager:
        return self._engine_manager

    def new_session(self) -> AsyncSession:
        """Bare session; the caller owns close()"""
        return self._engine_manager.get_session_maker()()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions

        Note: Automatically handles rollback on exception
        """
        session_maker = self._engine_manager.get_session_maker()
        async with session_maker() as session:
            yield session

    async def create_tables(self) -> None:
        await create_db_and_tables(engine_manager=self._engine_manager)

    async def dispose(self) -> None:
        await self._engine_manager.dispose()
