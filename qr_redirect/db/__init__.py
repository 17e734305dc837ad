"""
Database module with abstraction layer.

This module provides:
- QRStorage interface: the storage contract used by the services
- SQLStorage: SQLModel/SQLAlchemy implementation of QRStorage
- DatabaseAdapter: dialect-specific engine configuration
- Session management: Database session creation and management
"""

from qr_redirect.db.interface import DatabaseAdapter, QRStorage
from qr_redirect.db.session import get_session, async_session_maker, engine
from qr_redirect.db.sql_storage import SQLStorage

__all__ = [
    "DatabaseAdapter",
    "QRStorage",
    "SQLStorage",
    "get_session",
    "async_session_maker",
    "engine",
]
