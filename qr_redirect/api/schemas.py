"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
JSON field names are camelCase (targetUrl, totalScans, ...); Python
attributes stay snake_case through an alias generator.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from qr_redirect.core.validators import is_valid_url
from qr_redirect.db.models import QRCode, Visit
from qr_redirect.services.analytics_service import AnalyticsSummary


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _check_target_url(value: str) -> str:
    if not is_valid_url(value):
        raise ValueError("Must be a valid URL")
    return value


class QRCodeCreateRequest(CamelModel):
    """Request model for QR code creation. Any userId in the body is ignored."""
    title: str = Field(..., min_length=1, description="Display title")
    target_url: str = Field(..., description="Absolute http(s) URL to redirect to")
    slug: str = Field(
        ...,
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9-]+$",
        description="Lowercase alphanumeric with hyphens",
    )
    color: Optional[str] = Field(
        default=None,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Defaults to the configured DEFAULT_QR_COLOR",
    )

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title is required")
        return value

    @field_validator("target_url")
    @classmethod
    def target_url_is_absolute(cls, value: str) -> str:
        return _check_target_url(value)


class QRCodeUpdateRequest(CamelModel):
    """Request model for QR code update. The slug cannot be changed."""
    title: str = Field(..., min_length=1)
    target_url: str = Field(..., min_length=1)
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")

    @field_validator("target_url")
    @classmethod
    def target_url_is_absolute(cls, value: str) -> str:
        return _check_target_url(value)


class QRCodeResponse(CamelModel):
    id: str
    user_id: str
    title: str
    target_url: str
    slug: str
    color: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    redirect_url: str

    @classmethod
    def from_record(cls, qr_code: QRCode, base_url: str) -> "QRCodeResponse":
        return cls(
            id=qr_code.id,
            user_id=qr_code.user_id,
            title=qr_code.title,
            target_url=qr_code.target_url,
            slug=qr_code.slug,
            color=qr_code.color,
            created_at=qr_code.created_at,
            updated_at=qr_code.updated_at,
            redirect_url=f"{base_url.rstrip('/')}/r/{qr_code.slug}",
        )


class VisitResponse(CamelModel):
    id: str
    qr_code_id: str
    ip: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    device: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_record(cls, visit: Visit) -> "VisitResponse":
        return cls(
            id=visit.id,
            qr_code_id=visit.qr_code_id,
            ip=visit.ip,
            city=visit.city,
            country=visit.country,
            country_code=visit.country_code,
            device=visit.device,
            timestamp=visit.timestamp,
        )


class AnalyticsResponse(CamelModel):
    """Response model for the analytics endpoint."""
    qr_code: QRCodeResponse
    total_scans: int
    unique_visitors: int
    visits_by_date: Dict[str, int]
    visits_by_country: Dict[str, int]
    visits_by_device: Dict[str, int]
    recent_visits: List[VisitResponse]

    @classmethod
    def from_summary(cls, summary: AnalyticsSummary, base_url: str) -> "AnalyticsResponse":
        return cls(
            qr_code=QRCodeResponse.from_record(summary.qr_code, base_url),
            total_scans=summary.total_scans,
            unique_visitors=summary.unique_visitors,
            visits_by_date=summary.visits_by_date,
            visits_by_country=summary.visits_by_country,
            visits_by_device=summary.visits_by_device,
            recent_visits=[VisitResponse.from_record(v) for v in summary.recent_visits],
        )
