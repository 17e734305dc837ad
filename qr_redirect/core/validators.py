"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
The same rules are used by the request schemas and by the service layer.

Security Considerations:
- Slugs are restricted to [a-z0-9-] so they are safe in paths and queries
- Only http/https targets are accepted (no javascript:, data:, file: ...)
- Length limits prevent oversized records
"""

import re
from typing import Optional
from urllib.parse import urlparse

SLUG_PATTERN = re.compile(r'^[a-z0-9-]+$')
COLOR_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')

MAX_SLUG_LENGTH = 100
MAX_URL_LENGTH = 2048


def sanitize_slug(slug: str) -> Optional[str]:
    """
    Sanitize and validate slug format.

    Args:
        slug: The slug taken from the request path

    Returns:
        The slug if it can exist in storage, None otherwise
    """
    if not slug or not isinstance(slug, str):
        return None

    slug = slug.strip()

    if len(slug) > MAX_SLUG_LENGTH:
        return None

    if not SLUG_PATTERN.match(slug):
        return None

    return slug


def is_valid_color(color: str) -> bool:
    """Return True for a '#RRGGBB' hex color."""
    return isinstance(color, str) and COLOR_PATTERN.match(color) is not None


def is_valid_url(url: str) -> bool:
    """
    Validate target URL format.

    Accepts absolute http/https URLs with a non-empty host. Restricting
    the scheme is what keeps javascript:, data: and file: targets out;
    the rest of the URL (path, query, fragment) is not inspected.

    Args:
        url: The URL string to validate

    Returns:
        True if valid, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if len(url) > MAX_URL_LENGTH:
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False

    if result.scheme.lower() not in {'http', 'https'}:
        return False

    return bool(result.hostname)
