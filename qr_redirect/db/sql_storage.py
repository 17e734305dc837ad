"""
SQL Storage

QRStorage implementation on top of an async SQLAlchemy session.

The slug -> QR code, user -> QR codes and QR code -> visits lookups are
plain indexed queries. Creation relies on the unique index on slug, and
deletion removes visits and the QR code in a single transaction, so no
lookup can ever point at a missing record.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qr_redirect.core.exceptions import SlugAlreadyExistsError, StorageError
from qr_redirect.db.interface import QRStorage
from qr_redirect.db.models import QRCode, Visit, utcnow

logger = logging.getLogger(__name__)


class SQLStorage(QRStorage):
    """
    Storage backed by the qr_codes and visits tables.

    Every write commits its own transaction. Reads leave theirs open until
    release() or the end of the request.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def create_qr_code(self, qr_code: QRCode) -> QRCode:
        try:
            self.session.add(qr_code)
            await self.session.flush()
            await self.session.commit()
            return qr_code
        except IntegrityError as e:
            await self.session.rollback()
            # The unique index on slug is the only constraint a valid insert can hit
            logger.info(f"Rejected duplicate slug '{qr_code.slug}'")
            raise SlugAlreadyExistsError(qr_code.slug) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to create QR code: {e}", original_error=e)

    async def get_qr_code(self, qr_code_id: str) -> Optional[QRCode]:
        try:
            return await self.session.get(QRCode, qr_code_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load QR code: {e}", original_error=e)

    async def get_qr_code_by_slug(self, slug: str) -> Optional[QRCode]:
        statement = select(QRCode).where(QRCode.slug == slug)
        try:
            result = await self.session.execute(statement)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to resolve slug: {e}", original_error=e)

    async def list_qr_codes_for_user(self, user_id: str) -> List[QRCode]:
        statement = (
            select(QRCode)
            .where(QRCode.user_id == user_id)
            .order_by(QRCode.created_at.desc())
        )
        try:
            result = await self.session.execute(statement)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list QR codes: {e}", original_error=e)

    async def update_qr_code(
        self,
        qr_code_id: str,
        title: str,
        target_url: str,
        color: str,
    ) -> Optional[QRCode]:
        try:
            qr_code = await self.session.get(QRCode, qr_code_id)
            if qr_code is None:
                return None

            qr_code.title = title
            qr_code.target_url = target_url
            qr_code.color = color
            qr_code.updated_at = utcnow()

            await self.session.flush()
            await self.session.commit()
            return qr_code
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to update QR code: {e}", original_error=e)

    async def delete_qr_code(self, qr_code_id: str) -> Optional[QRCode]:
        try:
            qr_code = await self.session.get(QRCode, qr_code_id)
            if qr_code is None:
                return None

            await self.session.execute(
                delete(Visit).where(Visit.qr_code_id == qr_code_id)
            )
            await self.session.delete(qr_code)
            await self.session.commit()
            return qr_code
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to delete QR code: {e}", original_error=e)

    async def release(self) -> None:
        try:
            # expire_on_commit=False keeps loaded records readable
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to end read transaction: {e}", original_error=e)

    async def add_visit(self, visit: Visit) -> Visit:
        try:
            self.session.add(visit)
            await self.session.flush()
            await self.session.commit()
            return visit
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to record visit: {e}", original_error=e)

    async def list_visits(self, qr_code_id: str) -> List[Visit]:
        statement = (
            select(Visit)
            .where(Visit.qr_code_id == qr_code_id)
            .order_by(Visit.timestamp.desc(), Visit.id)
        )
        try:
            result = await self.session.execute(statement)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list visits: {e}", original_error=e)
