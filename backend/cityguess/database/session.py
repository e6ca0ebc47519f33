import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from ..config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

Base = declarative_base()


def create_engine_from_settings(database_url: str, isolation_level: Optional[str] = None):
    """
    Build the async engine.

    Server databases run every transaction at ``isolation_level`` so the
    score update and the rank recompute commit as one serializable unit.
    SQLite serializes writers through its database lock, keeps the driver
    default and opens a fresh connection per session.
    """
    if database_url.startswith("sqlite:///"):
        database_url = database_url.replace("sqlite:///", "sqlite+aiosqlite:///")

    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, future=True, poolclass=NullPool)

    if not isolation_level:
        return create_async_engine(database_url, future=True, pool_pre_ping=True)

    return create_async_engine(
        database_url,
        future=True,
        pool_pre_ping=True,
        isolation_level=isolation_level
    )


engine = create_engine_from_settings(settings.DATABASE_URL, settings.DB_ISOLATION_LEVEL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_db():
    """Yield a database session for one request."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create all tables."""
    # Register models on Base.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")
