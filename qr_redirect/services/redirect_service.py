"""
Redirect Service

This service handles the public "scan a QR code" flow:
1. resolve the slug to a QR code and end the read transaction
2. record the visit (failures are logged, never propagated)
3. hand back the target URL for the redirect response

The visit is written before the redirect is returned, but recording is
observability only: it never changes the redirect outcome.
"""

import logging

from qr_redirect.core.exceptions import QRCodeNotFoundError
from qr_redirect.core.request_context import RequestContext
from qr_redirect.core.validators import sanitize_slug
from qr_redirect.db.interface import QRStorage
from qr_redirect.db.models import QRCode
from qr_redirect.services.visit_recorder import VisitRecorderService

logger = logging.getLogger(__name__)


class SlugResolver:
    """Resolves public slugs to QR code records."""

    def __init__(self, storage: QRStorage):
        self.storage = storage

    async def resolve(self, slug: str) -> QRCode:
        """
        Raises:
            QRCodeNotFoundError: If the slug is malformed or not mapped to a QR code
        """
        sanitized = sanitize_slug(slug)
        if not sanitized:
            raise QRCodeNotFoundError(slug)

        qr_code = await self.storage.get_qr_code_by_slug(sanitized)
        await self.storage.release()
        if qr_code is None:
            raise QRCodeNotFoundError(slug)
        return qr_code


class RedirectService:
    """
    Service for handling QR code redirections.
    """

    def __init__(self, resolver: SlugResolver, recorder: VisitRecorderService):
        self.resolver = resolver
        self.recorder = recorder

    async def handle_redirect(self, slug: str, context: RequestContext) -> str:
        """
        Resolve a slug, record the visit and return the redirect target.

        Raises:
            QRCodeNotFoundError: If the slug is unknown (no visit is recorded)
        """
        qr_code = await self.resolver.resolve(slug)

        try:
            await self.recorder.record(qr_code.id, context)
        except Exception as e:
            logger.error(
                f"Failed to record visit for {slug}: {str(e)}",
                exc_info=True
            )

        return qr_code.target_url
