"""
Custom Exceptions

This module defines the closed set of errors raised by the service layer.
Endpoints map each class to exactly one HTTP status code:

- ValidationError   -> 400
- UnauthorizedError -> 401
- ForbiddenError    -> 403
- NotFoundError     -> 404
- StorageError      -> 500
- UpstreamError     -> never surfaced (absorbed by the geolocation service)
"""

from typing import Optional


class QRServiceException(Exception):
    """Base exception for the QR redirect service."""
    pass


class ValidationError(QRServiceException):
    """Raised when client input is malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class SlugAlreadyExistsError(ValidationError):
    """Raised when a QR code is created with a slug that is already taken."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' is already in use", field="slug")


class UnauthorizedError(QRServiceException):
    """Raised when the bearer credential is missing or invalid."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(QRServiceException):
    """Raised when an authenticated user accesses a QR code they do not own."""

    def __init__(self, message: str = "Forbidden: You don't own this QR code"):
        super().__init__(message)


class NotFoundError(QRServiceException):
    """Raised when a referenced entity does not exist."""
    pass


class QRCodeNotFoundError(NotFoundError):
    """Raised when a QR code cannot be found by id or slug."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"QR code '{key}' not found")


class StorageError(QRServiceException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class UpstreamError(QRServiceException):
    """Raised when the geolocation provider cannot answer."""

    def __init__(self, service_name: str, reason: str):
        self.service_name = service_name
        self.reason = reason
        super().__init__(f"Upstream '{service_name}' failed: {reason}")
