"""
app/domain/competitor_inventory.py

Domain models for competitor inventory tracking.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from db.models.competitor_scrape_log import ScrapeLogStatus
from db.models.competitor_vehicle import CompetitorVehicleStatus

VehicleStatus = CompetitorVehicleStatus
ScrapeRunStatus = ScrapeLogStatus

FingerprintKey = str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ScrapedVehicle:
    """
    One listing extracted from a dealer page during a single scrape run.
    """

    external_url: str
    brand: str
    model: str
    variant: str | None = None
    build_year: int | None = None
    mileage: int | None = None
    price: Decimal | None = None
    fuel_type: str | None = None
    transmission: str | None = None
    body_type: str | None = None
    color: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class CompetitorDealer:
    id: uuid.UUID
    scrape_url: str
    name: str = ""
    is_active: bool = True
    last_scraped_at: datetime | None = None
    last_scrape_status: str | None = None
    last_scrape_vehicles_count: int | None = None


@dataclass(frozen=True)
class CompetitorVehicle:
    """
    Stored lifecycle state of one fingerprinted listing.

    `sold_at` is set exactly when `status` is sold.
    """

    id: uuid.UUID
    dealer_id: uuid.UUID
    fingerprint: FingerprintKey
    external_url: str | None
    brand: str
    model: str
    status: str
    first_seen_at: datetime
    last_seen_at: datetime
    variant: str | None = None
    build_year: int | None = None
    mileage: int | None = None
    mileage_bucket: int | None = None
    price: Decimal | None = None
    fuel_type: str | None = None
    transmission: str | None = None
    body_type: str | None = None
    color: str | None = None
    image_url: str | None = None
    sold_at: datetime | None = None
    consecutive_missing_scrapes: int = 0
    total_stock_days: int = 0
    reappeared_count: int = 0


@dataclass(frozen=True)
class PriceHistoryEntry:
    vehicle_id: uuid.UUID
    old_price: Decimal | None
    new_price: Decimal | None
    price_change: Decimal | None
    recorded_at: datetime


@dataclass(frozen=True)
class ScrapeRunLog:
    dealer_id: uuid.UUID
    status: str
    vehicles_found: int
    vehicles_new: int
    vehicles_sold: int
    vehicles_reappeared: int
    duration_ms: int
    created_at: datetime
    error_message: str | None = None


@dataclass
class ReconciliationResult:
    """
    Counters accumulated while reconciling one scrape against stored state.
    """

    vehicles_found: int = 0
    vehicles_new: int = 0
    vehicles_sold: int = 0
    vehicles_reappeared: int = 0
    vehicles_missing: int = 0
    price_changes: int = 0
    duplicates_skipped: int = 0
    failed_writes: int = 0


@dataclass(frozen=True)
class ScrapeRunStats:
    vehicles_found: int = 0
    vehicles_new: int = 0
    vehicles_sold: int = 0
    vehicles_reappeared: int = 0
    price_changes: int = 0
    duration_ms: int = 0


@dataclass(frozen=True)
class ScrapeRunResult:
    """
    Outcome of one dealer scrape run as returned to callers.
    """

    dealer_id: uuid.UUID
    success: bool
    message: str
    stats: ScrapeRunStats


@dataclass(frozen=True)
class DealerRunOutcome:
    """
    Per-dealer outcome when several dealers are scraped in one batch.
    """

    dealer_id: uuid.UUID
    result: ScrapeRunResult | None = None
    error: str | None = None
