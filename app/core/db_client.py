"""
Async metadata-store connection management using SQLAlchemy 2.0.

The DatabaseManager is constructed explicitly at process start (see the
application lifespan), kept on ``app.state`` and closed at shutdown. Nothing
in this module holds a process-wide connection.

Supports:
- PostgreSQL via asyncpg (production)
- SQLite via aiosqlite (local development and tests)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from app.core.config import Settings, settings as default_settings
from app.models.db import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the async engine and session factory for the metadata store."""

    def __init__(self, database_url: str, config: Optional[Settings] = None):
        self.database_url = database_url
        self.config = config or default_settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @classmethod
    def from_settings(cls, config: Settings) -> "DatabaseManager":
        """Build a manager from application settings."""
        return cls(config.database_url, config)

    def _create_engine(self) -> AsyncEngine:
        """Create engine for the configured URL."""
        if self.database_url.startswith("sqlite"):
            # In-memory SQLite must share one connection across sessions
            logger.info("Creating SQLite database engine")
            return create_async_engine(
                self.database_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=self.config.DB_ECHO,
            )

        # Log connection info without password - NEVER log credentials
        logger.info(
            "Creating direct database connection",
            extra={
                "host": self.config.DATABASE_HOST,
                "port": self.config.DATABASE_PORT,
                "database": self.config.DATABASE_NAME,
            },
        )
        return create_async_engine(
            self.database_url,
            poolclass=AsyncAdaptedQueuePool,
            pool_size=self.config.DB_POOL_SIZE,
            max_overflow=self.config.DB_MAX_OVERFLOW,
            pool_timeout=self.config.DB_POOL_TIMEOUT,
            pool_recycle=self.config.DB_POOL_RECYCLE,
            echo=self.config.DB_ECHO,
        )

    async def connect(self) -> AsyncEngine:
        """Initialize the engine and session factory (idempotent)."""
        if self._engine is None:
            self._engine = self._create_engine()
            self._session_factory = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.info("Database engine initialized")
        return self._engine

    @property
    def engine(self) -> AsyncEngine:
        """Get the async engine."""
        if self._engine is None:
            raise RuntimeError(
                "Engine not initialized. Call 'await db.connect()' first."
            )
        return self._engine

    async def test_connection(self, timeout: float = 15.0) -> bool:
        """Test database connectivity with timeout."""
        if self._engine is None:
            logger.warning("No database engine available")
            return False

        try:
            async with asyncio.timeout(timeout):
                async with self._engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            return True
        except asyncio.TimeoutError:
            logger.error(f"Database connection test timed out after {timeout}s")
            return False
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async session with automatic commit/rollback.

        Usage:
            async with db.session() as session:
                result = await session.execute(...)
        """
        if self._session_factory is None:
            await self.connect()

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_tables(self):
        """Create all tables (development and tests)."""
        engine = await self.connect()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def drop_tables(self):
        """Drop all tables (for testing only)."""
        engine = await self.connect()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped")

    async def close(self):
        """Dispose the engine and forget the session factory."""
        if self._engine is not None:
            try:
                await self._engine.dispose()
            finally:
                self._engine = None
                self._session_factory = None
        logger.info("Database connections closed")


def get_db(request: Request) -> DatabaseManager:
    """Dependency injection helper for FastAPI."""
    return request.app.state.db
