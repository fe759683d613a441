"""
Queries and row mutations for competitor dealers, vehicles, price history
and scrape logs.

Methods never commit; transaction boundaries belong to the caller.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.competitor_dealer import CompetitorDealerRecord
from db.models.competitor_price_history import CompetitorPriceHistoryRecord
from db.models.competitor_scrape_log import CompetitorScrapeLogRecord
from db.models.competitor_vehicle import CompetitorVehicleRecord

UPDATABLE_VEHICLE_COLUMNS: frozenset[str] = frozenset(
    {
        "external_url",
        "brand",
        "model",
        "variant",
        "build_year",
        "mileage",
        "mileage_bucket",
        "price",
        "fuel_type",
        "transmission",
        "body_type",
        "color",
        "image_url",
        "status",
        "last_seen_at",
        "sold_at",
        "consecutive_missing_scrapes",
        "total_stock_days",
        "reappeared_count",
    }
)


class CompetitorInventoryRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    # -- dealers -------------------------------------------------------------

    def get_dealer(self, dealer_id: uuid.UUID) -> CompetitorDealerRecord | None:
        return self._session.get(CompetitorDealerRecord, dealer_id)

    def list_active_dealers(self) -> list[CompetitorDealerRecord]:
        stmt: Select[tuple[CompetitorDealerRecord]] = (
            select(CompetitorDealerRecord)
            .where(CompetitorDealerRecord.is_active.is_(True))
            .order_by(CompetitorDealerRecord.name)
        )
        return list(self._session.scalars(stmt).all())

    def update_dealer_summary(
        self,
        *,
        dealer_id: uuid.UUID,
        last_scraped_at: datetime,
        status: str,
        vehicles_count: int | None,
    ) -> CompetitorDealerRecord | None:
        dealer = self.get_dealer(dealer_id)
        if dealer is None:
            return None
        dealer.last_scraped_at = last_scraped_at
        dealer.last_scrape_status = status
        if vehicles_count is not None:
            dealer.last_scrape_vehicles_count = vehicles_count
        return dealer

    # -- vehicles ------------------------------------------------------------

    def list_vehicles(self, dealer_id: uuid.UUID) -> list[CompetitorVehicleRecord]:
        stmt: Select[tuple[CompetitorVehicleRecord]] = (
            select(CompetitorVehicleRecord)
            .where(CompetitorVehicleRecord.dealer_id == dealer_id)
            .order_by(CompetitorVehicleRecord.first_seen_at, CompetitorVehicleRecord.fingerprint)
        )
        return list(self._session.scalars(stmt).all())

    def add_vehicle(self, **fields: Any) -> CompetitorVehicleRecord:
        vehicle = CompetitorVehicleRecord(**fields)
        self._session.add(vehicle)
        self._session.flush()
        return vehicle

    def update_vehicle(
        self,
        *,
        vehicle_id: uuid.UUID,
        changes: Mapping[str, Any],
    ) -> CompetitorVehicleRecord | None:
        unknown = set(changes) - UPDATABLE_VEHICLE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported vehicle columns: {sorted(unknown)}")

        vehicle = self._session.get(CompetitorVehicleRecord, vehicle_id)
        if vehicle is None:
            return None
        for column, value in changes.items():
            setattr(vehicle, column, value)
        self._session.flush()
        return vehicle

    # -- ledgers -------------------------------------------------------------

    def add_price_history(
        self,
        *,
        vehicle_id: uuid.UUID,
        old_price: Decimal | None,
        new_price: Decimal | None,
        price_change: Decimal | None,
        created_at: datetime,
    ) -> CompetitorPriceHistoryRecord:
        entry = CompetitorPriceHistoryRecord(
            vehicle_id=vehicle_id,
            old_price=old_price,
            new_price=new_price,
            price_change=price_change,
            created_at=created_at,
        )
        self._session.add(entry)
        self._session.flush()
        return entry

    def list_price_history(self, vehicle_id: uuid.UUID) -> list[CompetitorPriceHistoryRecord]:
        stmt: Select[tuple[CompetitorPriceHistoryRecord]] = (
            select(CompetitorPriceHistoryRecord)
            .where(CompetitorPriceHistoryRecord.vehicle_id == vehicle_id)
            .order_by(CompetitorPriceHistoryRecord.created_at)
        )
        return list(self._session.scalars(stmt).all())

    def add_scrape_log(self, **fields: Any) -> CompetitorScrapeLogRecord:
        log = CompetitorScrapeLogRecord(**fields)
        self._session.add(log)
        self._session.flush()
        return log

    def list_scrape_logs(
        self,
        *,
        dealer_id: uuid.UUID | None = None,
        limit: int = 50,
    ) -> list[CompetitorScrapeLogRecord]:
        stmt: Select[tuple[CompetitorScrapeLogRecord]] = select(CompetitorScrapeLogRecord)
        if dealer_id is not None:
            stmt = stmt.where(CompetitorScrapeLogRecord.dealer_id == dealer_id)
        stmt = stmt.order_by(CompetitorScrapeLogRecord.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())
