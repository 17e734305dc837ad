"""
Database Session Management

This module handles async database connections using SQLAlchemy's async engine.
The dialect-specific configuration comes from the database adapter.

Key Features:
- Async session management with commit on success / rollback on error
- create_tables() for development setups without Alembic
- dispose_engine() releases pooled connections on shutdown
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from qr_redirect.core.setting import settings
from qr_redirect.db import models  # noqa: F401  registers tables on SQLModel.metadata
from qr_redirect.db.sqlite_adapter import get_database_adapter

logger = logging.getLogger(__name__)

db_adapter = get_database_adapter(settings.DATABASE_URL)

# Creating the engine does not open a connection
engine = db_adapter.create_engine(settings.DATABASE_URL)

async_session_maker = async_sessionmaker(
    engine,
    class_=SQLModelAsyncSession,
    expire_on_commit=False,  # Records are handed out as values after commit
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    Usage in FastAPI:
        @router.get("/endpoint")
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create missing tables. Production deployments run Alembic instead."""
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    logger.info(f"Database tables ensured on {db_adapter.get_dialect_name()}")


async def dispose_engine() -> None:
    await engine.dispose()
