"""
Outbound HTTP Client Manager

This module owns the httpx client used for geolocation lookups.

Design:
- Created explicitly on application startup, closed on shutdown
- Shared across all requests in the same instance (connection reuse)
- Handed to request handlers through the get_geolocation_service dependency
"""

import logging
from typing import Optional

import httpx

from qr_redirect.core.setting import settings
from qr_redirect.services.geolocation import GeolocationService

logger = logging.getLogger(__name__)

_client: Optional[httpx.AsyncClient] = None


async def initialize_clients() -> None:
    """Create the shared outbound HTTP client."""
    global _client

    if _client is not None:
        logger.warning("HTTP client already initialized")
        return

    _client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.GEOLOCATION_TIMEOUT),
        headers={"User-Agent": "qr-redirect/1.0"},
    )
    logger.info(
        f"HTTP client initialized: geolocation_enabled={settings.GEOLOCATION_ENABLED}, "
        f"timeout={settings.GEOLOCATION_TIMEOUT}s"
    )


async def shutdown_clients() -> None:
    """Close the shared outbound HTTP client."""
    global _client

    if _client is not None:
        logger.info("Closing HTTP client")
        await _client.aclose()
        _client = None


def get_geolocation_service() -> GeolocationService:
    """
    FastAPI dependency returning a GeolocationService bound to the shared client.

    Lookups are disabled when the client has not been initialized
    (e.g. the app is served without its startup hooks).
    """
    if _client is None:
        return GeolocationService(client=None, enabled=False)

    return GeolocationService(
        client=_client,
        url_template=settings.GEOLOCATION_URL_TEMPLATE,
        timeout=settings.GEOLOCATION_TIMEOUT,
        enabled=settings.GEOLOCATION_ENABLED,
    )
