"""
Database Connection Management

Async engine lifecycle with SQLAlchemy 2.0. The engine is created at
application startup, handed to the store, and disposed at shutdown.
"""

import time
from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from footfall.config.settings import DatabaseSettings
from footfall.database.models import Base

logger = structlog.get_logger(__name__)


async def init_database(settings: DatabaseSettings, url: Optional[str] = None, **engine_options) -> AsyncEngine:
    """
    Create the async engine and verify connectivity.

    Args:
        settings: Database section of the application settings
        url: Explicit URL, overrides the settings
        engine_options: Extra ``create_async_engine`` keyword arguments

    Returns:
        AsyncEngine: The initialized database engine
    """
    url = url or settings.async_url

    engine_config = {
        "echo": settings.echo,
        "pool_pre_ping": True,  # verify connections before use
    }
    if url.startswith("postgresql"):
        # asyncpg handles its own connection pooling internally
        engine_config["poolclass"] = NullPool
    engine_config.update(engine_options)

    engine = create_async_engine(url, **engine_config)

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Failed to connect to database", error=str(e))
        await engine.dispose()
        raise

    logger.info(
        "Database connection established",
        dialect=engine.dialect.name,
        host=settings.host if not settings.url else None,
        database=settings.db if not settings.url else None,
    )
    return engine


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready", tables=len(Base.metadata.tables))


async def close_database(engine: Optional[AsyncEngine]) -> None:
    """
    Close the database connection pool.

    Gracefully closes all connections in the pool.
    """
    if engine is not None:
        await engine.dispose()
        logger.info("Database connection pool closed")


async def check_database_health(engine: Optional[AsyncEngine]) -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    if engine is None:
        return {"status": "not_configured"}

    try:
        start = time.perf_counter()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except SQLAlchemyError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
