"""
Visit Recording Service

Persists one Visit per redirect event.

Design Decisions:
- Geolocation is advisory: the visit is stored with null location fields
  when the lookup fails
- Only values that parse as an IP address are stored in visits.ip
- No retries; a storage failure propagates to the caller, which decides
  whether it matters (the redirect flow only logs it)
"""

import logging

from qr_redirect.core.request_context import RequestContext, normalize_ip
from qr_redirect.db.interface import QRStorage
from qr_redirect.db.models import Visit, generate_id, utcnow
from qr_redirect.services.geolocation import GeolocationService

logger = logging.getLogger(__name__)


class VisitRecorderService:
    """
    Service for recording QR code visits.
    """

    def __init__(self, storage: QRStorage, geolocation: GeolocationService):
        """
        Args:
            storage: Storage the visit is written to
            geolocation: Best-effort IP enrichment
        """
        self.storage = storage
        self.geolocation = geolocation

    async def record(self, qr_code_id: str, context: RequestContext) -> Visit:
        """
        Record a visit to a QR code.

        Args:
            qr_code_id: The QR code that was scanned
            context: Visitor IP and device class

        Returns:
            The persisted Visit

        Raises:
            StorageError: If the visit cannot be written
        """
        ip = normalize_ip(context.ip)
        location = await self.geolocation.enrich(ip)
        if not location.is_known:
            logger.debug(f"No location for visit to QR code {qr_code_id}")

        visit = Visit(
            id=generate_id(),
            qr_code_id=qr_code_id,
            ip=ip,
            city=location.city,
            country=location.country,
            country_code=location.country_code,
            device=context.device,
            timestamp=utcnow(),
        )

        visit = await self.storage.add_visit(visit)
        logger.debug(f"Recorded visit {visit.id} for QR code {qr_code_id} ({context.device})")
        return visit
