"""
Geolocation Service

Best-effort IP -> {city, country, countryCode} enrichment for visits.

Design Decisions:
- One GET per lookup, no retries
- Explicit timeout so a slow provider cannot hold up a redirect for long
- Every failure is absorbed: callers always get a GeoLocation back,
  with all fields None when the lookup did not succeed
"""

import ipaddress
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from qr_redirect.core.exceptions import UpstreamError
from qr_redirect.core.request_context import normalize_ip
from qr_redirect.db.models import (
    CITY_MAX_LENGTH,
    COUNTRY_CODE_MAX_LENGTH,
    COUNTRY_MAX_LENGTH,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoLocation:
    city: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return any((self.city, self.country, self.country_code))


UNKNOWN_LOCATION = GeoLocation()


def _clip(value: Any, max_length: int) -> Optional[str]:
    """Provider strings are stored as-is, cut to their column width."""
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()[:max_length]


class GeolocationService:
    """
    Looks up visitor locations through an ipapi.co compatible HTTP API.

    The httpx client is owned by the caller (created on startup, closed
    on shutdown) and shared by all requests.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient],
        url_template: str = "https://ipapi.co/{ip}/json/",
        timeout: float = 3.0,
        enabled: bool = True,
    ):
        self.client = client
        self.url_template = url_template
        self.timeout = timeout
        self.enabled = enabled

    async def enrich(self, ip: Optional[str]) -> GeoLocation:
        """
        Resolve an IP to a location.

        Never raises; returns UNKNOWN_LOCATION on any failure.
        """
        if not self.enabled:
            return UNKNOWN_LOCATION

        address = normalize_ip(ip)
        if address is None or not ipaddress.ip_address(address).is_global:
            # Private, loopback and non-address values have no public location
            return UNKNOWN_LOCATION

        try:
            payload = await self._fetch(address)
        except UpstreamError as e:
            logger.warning(f"Failed to fetch geolocation for {ip}: {e.reason}")
            return UNKNOWN_LOCATION

        return GeoLocation(
            city=_clip(payload.get("city"), CITY_MAX_LENGTH),
            country=_clip(payload.get("country_name"), COUNTRY_MAX_LENGTH),
            country_code=_clip(payload.get("country_code"), COUNTRY_CODE_MAX_LENGTH),
        )

    async def _fetch(self, ip: str) -> dict[str, Any]:
        url = self.url_template.format(ip=ip)
        try:
            response = await self.client.get(url, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamError("geolocation", f"{type(e).__name__}: {e}")

        if not response.is_success:
            raise UpstreamError("geolocation", f"HTTP {response.status_code} {response.reason_phrase}")

        try:
            payload = response.json()
        except ValueError:
            raise UpstreamError("geolocation", "response is not JSON")

        if not isinstance(payload, dict):
            raise UpstreamError("geolocation", "unexpected response shape")

        # ipapi.co answers reserved/invalid addresses with 200 and an error flag
        if payload.get("error"):
            raise UpstreamError("geolocation", str(payload.get("reason", "lookup rejected")))

        return payload
