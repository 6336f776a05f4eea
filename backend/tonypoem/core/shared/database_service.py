# backend/tonypoem/core/shared/database_service.py
"""
Database service for async SQLAlchemy session management.

Owns the engine and session factory behind the content document store and
the admin accounts table. PostgreSQL (asyncpg) is used in production; SQLite
(aiosqlite) serves local development and tests.

Usage:
    from tonypoem.core.shared.database_service import DatabaseService

    database = DatabaseService(settings.database_url)

    # Get async session (context manager)
    async with database.get_session() as session:
        result = await session.execute(select(AdminUser).where(AdminUser.email == email))
        user = result.scalar_one_or_none()

    # Initialize database (create tables)
    await database.init_db()

    # Health check
    health = await database.health_check()

PostgreSQL Configuration:
    Connection pooling is configured via settings:
    - DB_POOL_SIZE: Number of connections to maintain
    - DB_MAX_OVERFLOW: Extra connections allowed during peak load
    - DB_POOL_RECYCLE: Recycle connections after N seconds
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tonypoem.config import settings
from tonypoem.core.database.base import Base


def _is_sqlite_memory(url: str) -> bool:
    if not url.startswith("sqlite"):
        return False
    path = url.split("://", 1)[-1]
    return path in ("", "/") or ":memory:" in path


class DatabaseService:
    """
    Database service for managing async SQLAlchemy sessions.

    Attributes:
        _engine: Async SQLAlchemy engine
        _session_factory: Async session factory
        _logger: Logger instance

    Methods:
        get_session(): Get async database session (context manager)
        init_db(): Initialize database (create all tables)
        health_check(): Check database connectivity
        close(): Close database engine and connections
    """

    def __init__(self, database_url: Optional[str] = None):
        self._logger = logging.getLogger("tonypoem.database")
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None
        self.database_url = database_url or settings.database_url
        self._initialize_engine()

    @property
    def dialect(self) -> str:
        return self.database_url.split("+", 1)[0].split(":", 1)[0]

    def _initialize_engine(self) -> None:
        """
        Create the async engine for the configured URL.

        SQLite in-memory databases share a single connection (StaticPool) so
        every session sees the same tables; PostgreSQL gets a pre-pinged,
        recycled connection pool.
        """
        url = self.database_url
        safe_url = url.split("@")[-1] if "@" in url else url
        self._logger.info(f"Initializing database: {safe_url}")

        if url.startswith("sqlite"):
            kwargs: Dict[str, Any] = {
                "echo": settings.debug,
                "connect_args": {"check_same_thread": False},
            }
            if _is_sqlite_memory(url):
                kwargs["poolclass"] = StaticPool
            self._engine = create_async_engine(url, **kwargs)
        else:
            self._engine = create_async_engine(
                url,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=True,  # Validate connections before use
                pool_recycle=settings.db_pool_recycle,
                echo=settings.debug,
            )
            self._logger.info(
                f"Connection pool: size={settings.db_pool_size}, "
                f"max_overflow={settings.db_max_overflow}, recycle={settings.db_pool_recycle}s"
            )

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get async database session as context manager.

        Automatically handles commit on success and rollback on error.

        Yields:
            AsyncSession: Async database session

        Raises:
            RuntimeError: If database is not initialized
            Exception: Any database errors (triggers rollback)
        """
        if not self._session_factory:
            raise RuntimeError("Database not initialized")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init_db(self) -> None:
        """
        Initialize database by creating all tables.

        Safe to call multiple times (won't recreate existing tables).
        """
        if not self._engine:
            raise RuntimeError("Database engine not initialized")

        self._logger.info("Creating database tables...")

        async with self._engine.begin() as conn:
            # Import all models to ensure they're registered with Base
            from tonypoem.core.database import models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)

        self._logger.info("Database tables created successfully")

    async def health_check(self) -> Dict[str, Any]:
        """
        Check database connectivity and report per-collection document counts.

        Returns:
            Dict with health status:
                {
                    "status": "healthy" | "unhealthy",
                    "connected": True | False,
                    "database_type": "sqlite" | "postgresql",
                    "collections": {"blogs": count, ...},
                    "error": "error message" (if unhealthy),
                }
        """
        from tonypoem.core.database.models import ContentDocument

        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
                result = await session.execute(
                    select(ContentDocument.collection, func.count(ContentDocument.id))
                    .group_by(ContentDocument.collection)
                )
                collections = {name: count for name, count in result.all()}

            return {
                "status": "healthy",
                "connected": True,
                "database_type": self.dialect,
                "collections": collections,
            }
        except Exception as e:
            self._logger.error(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "connected": False,
                "database_type": self.dialect,
                "error": str(e),
            }

    async def close(self) -> None:
        """Dispose the engine and release pooled connections."""
        if self._engine:
            await self._engine.dispose()
            self._logger.info("Database connections closed")
