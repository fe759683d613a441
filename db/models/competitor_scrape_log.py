"""
db/models/competitor_scrape_log.py

Audit row written once per dealer scrape run, success or failure.
"""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class ScrapeLogStatus:
    SUCCESS = "success"
    ERROR = "error"


class CompetitorScrapeLogRecord(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    __tablename__ = "competitor_scrape_logs"

    dealer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("competitor_dealers.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, comment="success, error")
    vehicles_found: Mapped[int] = mapped_column(nullable=False, default=0)
    vehicles_new: Mapped[int] = mapped_column(nullable=False, default=0)
    vehicles_sold: Mapped[int] = mapped_column(nullable=False, default=0)
    vehicles_reappeared: Mapped[int] = mapped_column(nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_ms: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        Index("ix_competitor_scrape_logs_dealer_created", "dealer_id", "created_at"),
        Index("ix_competitor_scrape_logs_status", "status"),
    )
