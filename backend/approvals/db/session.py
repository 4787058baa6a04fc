"""
Database session management with async SQLAlchemy 2.0.
Handles connection pooling and session lifecycle.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from typing import AsyncGenerator

from approvals.core.config import settings
from approvals.core.logging import get_logger
from approvals.db.base import Base

logger = get_logger(__name__)

# Global engine and sessionmaker
engine = None
async_session_maker: async_sessionmaker[AsyncSession] = None


def create_engine(database_url: str = None):
    """Create async SQLAlchemy engine with connection pooling."""
    global engine

    url = database_url or settings.DATABASE_URL
    pool_kwargs = {}
    if not url.startswith("sqlite"):
        pool_kwargs = {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,  # Verify connections before using
        }

    engine = create_async_engine(url, echo=False, **pool_kwargs)

    logger.info("Database engine created", extra=pool_kwargs)
    return engine


def create_sessionmaker():
    """Create async sessionmaker."""
    global async_session_maker

    if engine is None:
        create_engine()

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    logger.info("Sessionmaker created")
    return async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session for one unit of work and ensure it's closed after use.
    Services commit explicitly; anything left uncommitted is rolled back.
    """
    if async_session_maker is None:
        create_sessionmaker()

    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Initialize database connection."""
    if engine is None:
        create_engine()

    if async_session_maker is None:
        create_sessionmaker()

    logger.info("Database initialized")


async def create_tables(target: AsyncEngine = None) -> None:
    """
    Create all tables registered on Base, on ``target`` or the global engine.
    Intended for local development and tests; production schemas are migrated.
    """
    import approvals.models  # noqa: F401  registers models on Base

    if target is None:
        target = engine or create_engine()

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def close_db() -> None:
    """Close database connections."""
    global engine, async_session_maker

    if engine:
        await engine.dispose()
        logger.info("Database connections closed")
    engine = None
    async_session_maker = None
