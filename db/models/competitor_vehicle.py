"""
db/models/competitor_vehicle.py

Durable lifecycle record for one competitor listing, keyed by fingerprint.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CompetitorVehicleStatus:
    IN_STOCK = "in_stock"
    SOLD = "sold"
    # Present in the stored enum, never written by reconciliation.
    REMOVED = "removed"


class CompetitorVehicleRecord(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "competitor_vehicles"

    dealer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("competitor_dealers.id", ondelete="CASCADE"),
        nullable=False,
    )
    fingerprint: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="BRAND|MODEL|YEAR|MILEAGE_BUCKET|COLOR",
    )
    external_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    brand: Mapped[str] = mapped_column(String(120), nullable=False)
    model: Mapped[str] = mapped_column(String(120), nullable=False)
    variant: Mapped[str | None] = mapped_column(String(255), nullable=True)
    build_year: Mapped[int | None] = mapped_column(nullable=True)
    mileage: Mapped[int | None] = mapped_column(nullable=True)
    mileage_bucket: Mapped[int | None] = mapped_column(nullable=True)
    price: Mapped[Decimal | None] = mapped_column(nullable=True)
    fuel_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    transmission: Mapped[str | None] = mapped_column(String(64), nullable=True)
    body_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    color: Mapped[str | None] = mapped_column(String(64), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=CompetitorVehicleStatus.IN_STOCK,
        comment="in_stock, sold, removed",
    )
    first_seen_at: Mapped[datetime] = mapped_column(nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(nullable=False)
    sold_at: Mapped[datetime | None] = mapped_column(nullable=True)
    consecutive_missing_scrapes: Mapped[int] = mapped_column(nullable=False, default=0)
    total_stock_days: Mapped[int] = mapped_column(nullable=False, default=0)
    reappeared_count: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "dealer_id",
            "fingerprint",
            name="uq_competitor_vehicles_dealer_fingerprint",
        ),
        CheckConstraint(
            "status IN ('in_stock', 'sold', 'removed')",
            name="ck_competitor_vehicles_status",
        ),
        CheckConstraint(
            "(status = 'sold' AND sold_at IS NOT NULL) "
            "OR (status <> 'sold' AND sold_at IS NULL)",
            name="ck_competitor_vehicles_sold_at",
        ),
        CheckConstraint(
            "consecutive_missing_scrapes >= 0 AND reappeared_count >= 0",
            name="ck_competitor_vehicles_counters",
        ),
        Index("ix_competitor_vehicles_dealer_id", "dealer_id"),
        Index("ix_competitor_vehicles_dealer_status", "dealer_id", "status"),
        Index("ix_competitor_vehicles_sold_at", "sold_at"),
    )
