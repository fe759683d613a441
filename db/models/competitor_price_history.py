"""
db/models/competitor_price_history.py

Append-only ledger of observed competitor price changes.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class CompetitorPriceHistoryRecord(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    __tablename__ = "competitor_price_history"

    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("competitor_vehicles.id", ondelete="CASCADE"),
        nullable=False,
    )
    old_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    new_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    price_change: Mapped[Decimal | None] = mapped_column(
        nullable=True,
        comment="new_price - old_price",
    )

    __table_args__ = (
        Index("ix_competitor_price_history_vehicle_created", "vehicle_id", "created_at"),
    )
