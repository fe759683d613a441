"""
db/models/competitor_dealer.py

A competitor storefront whose public listing page is scraped.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CompetitorDealerRecord(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "competitor_dealers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    website_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    scrape_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Public listing page fetched on every scrape run",
    )
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    last_scraped_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_scrape_status: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="success, error",
    )
    last_scrape_vehicles_count: Mapped[int | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("ix_competitor_dealers_is_active", "is_active"),
    )
