"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

Key characteristics:
- File-based (single .db file), no server required
- Single writer at a time (file locking)
- Foreign keys are off by default and must be enabled per connection
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from qr_redirect.db.interface import DatabaseAdapter


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.
    """

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        SQLite-specific configuration:
        - NullPool: one connection per session (file-based, no pooling needed)
        - check_same_thread=False: required for async SQLite operations
        - PRAGMA foreign_keys=ON on every new connection

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        engine_kwargs = {"echo": False}
        engine_kwargs.update(kwargs)

        engine = create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
        return engine

    def get_pool_class(self) -> type[NullPool]:
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False
        }

    def get_dialect_name(self) -> str:
        return "sqlite"


class DefaultAdapter(DatabaseAdapter):
    """
    Adapter for server databases (PostgreSQL, MySQL) using SQLAlchemy's
    default QueuePool.
    """

    def __init__(self, database_url: str):
        self.dialect_name = make_url(database_url).get_backend_name()

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        engine_kwargs = {"echo": False, "pool_pre_ping": True}
        engine_kwargs.update(kwargs)
        return create_async_engine(database_url, **engine_kwargs)

    def get_pool_class(self) -> None:
        return None

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_dialect_name(self) -> str:
        return self.dialect_name


def get_database_adapter(database_url: str = "") -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    Returns:
        SQLiteAdapter for sqlite URLs, DefaultAdapter otherwise
    """
    if database_url.startswith("sqlite"):
        return SQLiteAdapter()
    return DefaultAdapter(database_url)
