"""
Async SQLAlchemy engine and session plumbing.

PostgreSQL (psycopg 3) in deployment; the test suite points
``DATABASE_URL`` at a SQLite file through aiosqlite.
"""

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from menumate.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

DATABASE_URL = settings.database_url


def _engine_options(url: str) -> dict:
    """Pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


engine = create_async_engine(DATABASE_URL, echo=settings.sql_echo, **_engine_options(DATABASE_URL))

# Rows stay readable after commit; handlers serialize them afterwards
async_session_maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session, closed when the response is sent."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    The session factory itself.

    For handlers that run several independent queries concurrently, each
    on its own session.
    """
    return async_session_maker


async def init_db() -> None:
    """Create missing tables. Runs once at startup."""
    from menumate import models  # noqa: F401  (registers tables on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")
