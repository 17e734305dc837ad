"""
Database Models for QR Redirect Service

This module defines the SQLModel database schemas for:
- QRCode: Maps a public slug to a target URL, owned by a user
- Visit: One recorded redirect event, used for analytics

Design Decisions:
- Unique index on slug: the slug -> QR code lookup is a real unique index,
  so two concurrent creates with the same slug cannot both succeed
- Index on user_id: lists a user's QR codes without a secondary table
- Foreign key + index on visits.qr_code_id: every visit belongs to a live
  QR code; deleting the QR code removes its visits in the same transaction
- Visits are immutable once written
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlmodel import Field, SQLModel


IP_MAX_LENGTH = 45  # IPv6 text form
CITY_MAX_LENGTH = 100
COUNTRY_MAX_LENGTH = 100
COUNTRY_CODE_MAX_LENGTH = 8


def generate_id() -> str:
    """Opaque unique identifier for new records."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QRCode(SQLModel, table=True):
    """
    QR code records.

    Fields:
    - id: Opaque identifier generated on create
    - user_id: Owner, as resolved by the identity verifier
    - title: Display title
    - target_url: Absolute http/https URL visitors are redirected to
    - slug: Public identifier used in /r/<slug>, unique and immutable
    - color: '#RRGGBB' color used when rendering the QR image
    - created_at / updated_at: Lifecycle timestamps
    """
    __tablename__ = "qr_codes"

    id: str = Field(
        default_factory=generate_id,
        sa_column=Column(String(32), primary_key=True)
    )
    user_id: str = Field(
        sa_column=Column(String(128), nullable=False, index=True)
    )
    title: str = Field(sa_column=Column(String(200), nullable=False))
    target_url: str = Field(sa_column=Column(Text, nullable=False))
    slug: str = Field(
        sa_column=Column(String(100), nullable=False, unique=True, index=True)
    )
    color: str = Field(
        default="#3b82f6",
        sa_column=Column(String(7), nullable=False, default="#3b82f6")
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class Visit(SQLModel, table=True):
    """
    Visit table for analytics.

    All enrichment fields are nullable: geolocation is best effort and
    the device is only known when a user agent was sent.
    """
    __tablename__ = "visits"

    id: str = Field(
        default_factory=generate_id,
        sa_column=Column(String(32), primary_key=True)
    )
    qr_code_id: str = Field(
        sa_column=Column(
            String(32),
            ForeignKey("qr_codes.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    ip: Optional[str] = Field(
        default=None,
        sa_column=Column(String(IP_MAX_LENGTH), nullable=True)
    )
    city: Optional[str] = Field(default=None, sa_column=Column(String(CITY_MAX_LENGTH), nullable=True))
    country: Optional[str] = Field(default=None, sa_column=Column(String(COUNTRY_MAX_LENGTH), nullable=True))
    country_code: Optional[str] = Field(default=None, sa_column=Column(String(COUNTRY_CODE_MAX_LENGTH), nullable=True))
    device: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    timestamp: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
