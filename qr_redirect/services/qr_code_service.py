"""
QR Code Service

This service handles the owner-facing QR code operations:
- create (owner forced to the authenticated user, slug unique)
- list / get / update / delete with ownership checks

Input is validated before any storage call, so a rejected request never
has side effects.
"""

import logging
from typing import List, Optional

from qr_redirect.core.exceptions import ForbiddenError, QRCodeNotFoundError, ValidationError
from qr_redirect.core.validators import is_valid_color, is_valid_url, sanitize_slug
from qr_redirect.db.interface import QRStorage
from qr_redirect.db.models import QRCode, generate_id, utcnow

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#3b82f6"


def _require_title(title: str) -> str:
    if not title or not title.strip():
        raise ValidationError("Title is required", field="title")
    return title.strip()


def _require_url(target_url: str) -> str:
    if not is_valid_url(target_url):
        raise ValidationError(
            "Invalid URL format. URL must use http:// or https:// and have a valid domain",
            field="targetUrl",
        )
    return target_url


def _require_color(color: str) -> str:
    if not is_valid_color(color):
        raise ValidationError("Must be a valid hex color", field="color")
    return color


class QRCodeService:
    """
    Owner-facing QR code operations.
    """

    def __init__(self, storage: QRStorage, default_color: str = DEFAULT_COLOR):
        self.storage = storage
        self.default_color = default_color

    async def create(
        self,
        user_id: str,
        title: str,
        target_url: str,
        slug: str,
        color: Optional[str] = None,
    ) -> QRCode:
        """
        Create a QR code owned by user_id.

        Raises:
            ValidationError: If any field is malformed
            SlugAlreadyExistsError: If the slug is taken
            StorageError: If the write fails
        """
        title = _require_title(title)
        target_url = _require_url(target_url)
        if sanitize_slug(slug) != slug:
            raise ValidationError(
                "Slug must be lowercase alphanumeric with hyphens", field="slug"
            )
        color = _require_color(color or self.default_color)

        qr_code = QRCode(
            id=generate_id(),
            user_id=user_id,
            title=title,
            target_url=target_url,
            slug=slug,
            color=color,
            created_at=utcnow(),
        )
        qr_code = await self.storage.create_qr_code(qr_code)
        logger.info(f"Created QR code {qr_code.id} with slug '{slug}' for user {user_id}")
        return qr_code

    async def list_for_user(self, user_id: str) -> List[QRCode]:
        return await self.storage.list_qr_codes_for_user(user_id)

    async def get_owned(self, qr_code_id: str, user_id: str) -> QRCode:
        """
        Load a QR code and check that user_id owns it.

        Raises:
            QRCodeNotFoundError: If the QR code does not exist
            ForbiddenError: If it belongs to someone else
        """
        qr_code = await self.storage.get_qr_code(qr_code_id)
        if qr_code is None:
            raise QRCodeNotFoundError(qr_code_id)
        if qr_code.user_id != user_id:
            raise ForbiddenError()
        return qr_code

    async def update(
        self,
        qr_code_id: str,
        user_id: str,
        title: str,
        target_url: str,
        color: Optional[str] = None,
    ) -> QRCode:
        """
        Update title, target URL and (optionally) color.

        The slug is immutable. An omitted color keeps the current one.
        """
        title = _require_title(title)
        target_url = _require_url(target_url)
        if color is not None:
            _require_color(color)

        qr_code = await self.get_owned(qr_code_id, user_id)
        updated = await self.storage.update_qr_code(
            qr_code_id,
            title=title,
            target_url=target_url,
            color=color or qr_code.color,
        )
        if updated is None:
            # Deleted between the ownership check and the update
            raise QRCodeNotFoundError(qr_code_id)
        return updated

    async def delete(self, qr_code_id: str, user_id: str) -> QRCode:
        """Delete a QR code with its visits. Ownership is checked first."""
        await self.get_owned(qr_code_id, user_id)
        deleted = await self.storage.delete_qr_code(qr_code_id)
        if deleted is None:
            raise QRCodeNotFoundError(qr_code_id)
        logger.info(f"Deleted QR code {qr_code_id} for user {user_id}")
        return deleted
