"""
Analytics Service

Summarizes the visit history of a QR code.

All statistics are derived from one list of visits loaded per call.
There is no incremental state and no pagination: the whole history is
read every time, which bounds the practical number of visits per QR code.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from qr_redirect.db.interface import QRStorage
from qr_redirect.db.models import QRCode, Visit

UNKNOWN_DEVICE = "Unknown"


@dataclass
class AnalyticsSummary:
    qr_code: QRCode
    total_scans: int
    unique_visitors: int
    visits_by_date: Dict[str, int] = field(default_factory=dict)
    visits_by_country: Dict[str, int] = field(default_factory=dict)
    visits_by_device: Dict[str, int] = field(default_factory=dict)
    recent_visits: List[Visit] = field(default_factory=list)


def visit_date_key(timestamp: datetime) -> str:
    """UTC calendar date of a visit, e.g. '2025-01-31'. Naive values are UTC."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.date().isoformat()


def summarize_visits(
    qr_code: QRCode,
    visits: Sequence[Visit],
    recent_limit: int = 10,
) -> AnalyticsSummary:
    """
    Compute the analytics summary of a visit list.

    Args:
        qr_code: The QR code the visits belong to
        visits: Visits ordered newest first
        recent_limit: Number of visits returned as recent_visits

    Returns:
        AnalyticsSummary where:
        - unique_visitors counts distinct non-null IPs
        - visits_by_country skips visits without a country
        - visits_by_device counts a missing device as "Unknown"
    """
    by_date: Counter = Counter()
    by_country: Counter = Counter()
    by_device: Counter = Counter()
    unique_ips = set()

    for visit in visits:
        by_date[visit_date_key(visit.timestamp)] += 1
        if visit.country:
            by_country[visit.country] += 1
        by_device[visit.device or UNKNOWN_DEVICE] += 1
        if visit.ip:
            unique_ips.add(visit.ip)

    return AnalyticsSummary(
        qr_code=qr_code,
        total_scans=len(visits),
        unique_visitors=len(unique_ips),
        visits_by_date=dict(by_date),
        visits_by_country=dict(by_country),
        visits_by_device=dict(by_device),
        recent_visits=list(visits[:recent_limit]),
    )


class AnalyticsService:
    """
    Service for retrieving QR code analytics.

    Callers are responsible for checking that the requester owns the QR code.
    """

    def __init__(self, storage: QRStorage, recent_limit: int = 10):
        self.storage = storage
        self.recent_limit = recent_limit

    async def aggregate(self, qr_code: QRCode) -> AnalyticsSummary:
        visits = await self.storage.list_visits(qr_code.id)
        return summarize_visits(qr_code, visits, recent_limit=self.recent_limit)
