"""
Request Context

Extracts the visitor information recorded with every visit:
- client IP (proxy aware)
- device class derived from the User-Agent header
"""

import ipaddress
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from user_agents import parse as parse_user_agent

from qr_redirect.db.models import IP_MAX_LENGTH

MOBILE = "Mobile"
DESKTOP = "Desktop"


@dataclass(frozen=True)
class RequestContext:
    """Visitor information captured from a redirect request. ip is None unless it parses."""
    ip: Optional[str]
    device: str


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.

    Returns:
        IP address as string, or "unknown" when no address is available
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    return request.client.host if request.client else "unknown"


def normalize_ip(value: Optional[str]) -> Optional[str]:
    """
    Canonical text form of an IPv4/IPv6 address, or None if value is not one.

    X-Forwarded-For is client controlled; only values that parse as an
    address are stored with a visit or sent to the geolocation provider.
    """
    if not value:
        return None
    try:
        address = str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None
    # Scoped IPv6 zone ids are unbounded
    return address if len(address) <= IP_MAX_LENGTH else None


def classify_device(user_agent: Optional[str]) -> str:
    """
    Binary device classification.

    Returns "Mobile" when the user agent declares a mobile device,
    "Desktop" for everything else (tablets, bots, empty headers).
    """
    if not user_agent:
        return DESKTOP
    return MOBILE if parse_user_agent(user_agent).is_mobile else DESKTOP


def build_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip=normalize_ip(get_client_ip(request)),
        device=classify_device(request.headers.get("User-Agent")),
    )
