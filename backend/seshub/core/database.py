"""Database configuration and connection management."""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlparse, urlunparse

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from seshub.core.config import settings
from seshub.core.logger import get_logger

logger = get_logger()


def _sanitize_database_url(database_url: str) -> str:
    """Remove credentials from DATABASE_URL for safe logging."""
    try:
        parsed = urlparse(database_url)
        if parsed.hostname:
            safe_netloc = parsed.hostname
            if parsed.port:
                safe_netloc = f"{safe_netloc}:{parsed.port}"
        else:
            safe_netloc = ""
        return urlunparse((parsed.scheme, safe_netloc, parsed.path, "", "", ""))
    except ValueError:
        return "configured"


def _async_database_url(database_url: str) -> str:
    """Normalize DATABASE_URL to an async driver URL."""
    if database_url.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
        return database_url
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    logger.error(
        "Invalid DATABASE_URL format", url=_sanitize_database_url(database_url)
    )
    raise ValueError(
        "DATABASE_URL must start with postgresql://, postgresql+asyncpg:// "
        "or sqlite+aiosqlite://"
    )


ASYNC_DATABASE_URL = _async_database_url(settings.DATABASE_URL)

if settings.is_development or ASYNC_DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(
        ASYNC_DATABASE_URL,
        echo=settings.DEBUG,
        poolclass=NullPool,
    )
else:
    engine = create_async_engine(
        ASYNC_DATABASE_URL,
        echo=settings.DEBUG,
        pool_size=20,
        max_overflow=30,
        pool_pre_ping=True,
        pool_recycle=300,
    )

AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database dependency for FastAPI routes"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Context manager for database sessions outside of requests (scripts, jobs)."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def close_database_connections() -> None:
    await engine.dispose()
    logger.info("Database connections closed")


class DatabaseManager:
    """Database connection manager with health checks."""

    @staticmethod
    async def health_check() -> dict[str, Any]:
        """Check database connectivity"""
        try:
            async with AsyncSessionLocal() as session:
                await session.execute(text("SELECT 1"))
                return {
                    "status": "healthy",
                    "message": "Database connection successful",
                    "details": {
                        "database_url": _sanitize_database_url(settings.DATABASE_URL),
                    },
                }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "message": f"Database connection failed: {e!s}",
                "details": {"error": str(e)},
            }
