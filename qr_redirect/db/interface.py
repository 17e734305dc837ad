"""
Database Abstraction Interfaces

This module defines the two seams between the service layer and the
persistence engine:

- DatabaseAdapter: dialect-specific engine configuration (SQLite, PostgreSQL, ...)
- QRStorage: the storage contract the services depend on

Services only ever talk to QRStorage, so the persistence engine can be
swapped without touching redirect or analytics logic.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import Pool

from qr_redirect.db.models import QRCode, Visit


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Update the factory function to return the new adapter
    """

    @abstractmethod
    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.

        Args:
            database_url: Connection string for the database
            **kwargs: Additional engine configuration options

        Returns:
            Configured AsyncEngine instance
        """
        pass

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """Pool class for this database type, or None to use the default."""
        pass

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """Connection arguments specific to this database type."""
        pass

    @abstractmethod
    def get_dialect_name(self) -> str:
        """SQLAlchemy dialect name (e.g., 'sqlite', 'postgresql')."""
        pass


class QRStorage(ABC):
    """
    Storage contract for QR codes and their visits.

    Implementations must guarantee:
    - slug uniqueness is enforced atomically by create_qr_code
    - delete_qr_code removes the QR code and all of its visits together
    - single-record reads and writes are atomic
    """

    @abstractmethod
    async def create_qr_code(self, qr_code: QRCode) -> QRCode:
        """
        Persist a new QR code.

        Raises:
            SlugAlreadyExistsError: If the slug is taken
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_qr_code(self, qr_code_id: str) -> Optional[QRCode]:
        pass

    @abstractmethod
    async def get_qr_code_by_slug(self, slug: str) -> Optional[QRCode]:
        pass

    @abstractmethod
    async def list_qr_codes_for_user(self, user_id: str) -> List[QRCode]:
        """QR codes owned by user_id, most recently created first."""
        pass

    @abstractmethod
    async def update_qr_code(
        self,
        qr_code_id: str,
        title: str,
        target_url: str,
        color: str,
    ) -> Optional[QRCode]:
        """Update mutable fields; returns None if the QR code does not exist."""
        pass

    @abstractmethod
    async def delete_qr_code(self, qr_code_id: str) -> Optional[QRCode]:
        """
        Delete a QR code and all of its visits in one transaction.

        Returns:
            The deleted QR code, or None if it did not exist
        """
        pass

    @abstractmethod
    async def release(self) -> None:
        """
        End the current read transaction and hand the connection back.

        Loaded records stay usable. Called before slow work (the
        geolocation lookup) so a connection is not held while waiting.
        """
        pass

    @abstractmethod
    async def add_visit(self, visit: Visit) -> Visit:
        pass

    @abstractmethod
    async def list_visits(self, qr_code_id: str) -> List[Visit]:
        """Visits of a QR code ordered by timestamp, newest first."""
        pass
