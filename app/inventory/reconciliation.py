"""
Reconciliation of a fresh scrape against a dealer's stored inventory.

State machine per stored vehicle:

    in_stock --(seen)--------------------------> in_stock, misses reset
    in_stock --(missed, misses < threshold)----> in_stock, misses + 1
    in_stock --(missed, misses >= threshold)---> sold, sold_at = now
    sold     --(seen)--------------------------> in_stock, reappeared + 1
    sold     --(missed)------------------------> unchanged

A `removed` row that is seen again follows the sold path.

Every vehicle write is independent; a failed write is logged and the
vehicle is simply re-evaluated on the next run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from app.domain.competitor_inventory import (
    CompetitorVehicle,
    PriceHistoryEntry,
    ReconciliationResult,
    ScrapedVehicle,
    VehicleStatus,
    utc_now,
)
from app.inventory.fingerprint import generate_fingerprint, mileage_bucket
from app.scraping.config.models import DEFAULT_MISS_THRESHOLD
from app.scraping.logging_utils import log_event
from app.scraping.storage.base import VehicleRepository
from db.repositories.errors import StorageError

logger = logging.getLogger(__name__)

# Optional scraped fields; None never overwrites a stored value.
DISPLAY_FIELDS = (
    "brand",
    "model",
    "variant",
    "build_year",
    "mileage",
    "fuel_type",
    "transmission",
    "body_type",
    "color",
    "image_url",
)


def _to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _stock_days(first_seen_at: datetime, until: datetime) -> int:
    return max(0, (until - first_seen_at).days)


class ReconciliationEngine:
    """
    Applies one scrape run's observations to the stored vehicle set.
    """

    def __init__(
        self,
        *,
        repository: VehicleRepository,
        miss_threshold: int = DEFAULT_MISS_THRESHOLD,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if miss_threshold < 1:
            raise ValueError("miss_threshold must be at least 1")
        self._repository = repository
        self._miss_threshold = miss_threshold
        self._clock = clock

    @property
    def miss_threshold(self) -> int:
        return self._miss_threshold

    def reconcile(
        self,
        *,
        dealer_id: uuid.UUID,
        scraped: Sequence[ScrapedVehicle],
    ) -> ReconciliationResult:
        """
        Insert new vehicles, refresh seen ones and record misses for unseen ones.

        Loading the stored baseline is fatal on failure; individual vehicle
        writes are not.
        """

        now = self._clock()
        result = ReconciliationResult(vehicles_found=len(scraped))
        stored_by_fingerprint = {
            vehicle.fingerprint: vehicle for vehicle in self._repository.list_vehicles(dealer_id)
        }

        seen: set[str] = set()
        for vehicle in scraped:
            fingerprint = generate_fingerprint(vehicle)
            if fingerprint in seen:
                result.duplicates_skipped += 1
                log_event(
                    logger,
                    logging.INFO,
                    "duplicate_fingerprint_skipped",
                    dealer_id=dealer_id,
                    fingerprint=fingerprint,
                    external_url=vehicle.external_url,
                )
                continue
            seen.add(fingerprint)

            stored = stored_by_fingerprint.get(fingerprint)
            try:
                if stored is None:
                    self._insert_new(dealer_id, fingerprint, vehicle, now, result)
                else:
                    self._observe(stored, vehicle, now, result)
            except StorageError as exc:
                self._write_failed(result, dealer_id, fingerprint, exc)

        for fingerprint, stored in stored_by_fingerprint.items():
            if fingerprint in seen or stored.status != VehicleStatus.IN_STOCK:
                continue
            try:
                self._record_miss(stored, now, result)
            except StorageError as exc:
                self._write_failed(result, dealer_id, fingerprint, exc)

        log_event(
            logger,
            logging.INFO,
            "reconciliation_completed",
            dealer_id=dealer_id,
            vehicles_found=result.vehicles_found,
            vehicles_new=result.vehicles_new,
            vehicles_sold=result.vehicles_sold,
            vehicles_reappeared=result.vehicles_reappeared,
            vehicles_missing=result.vehicles_missing,
            price_changes=result.price_changes,
            duplicates_skipped=result.duplicates_skipped,
            failed_writes=result.failed_writes,
        )
        return result

    def _insert_new(
        self,
        dealer_id: uuid.UUID,
        fingerprint: str,
        scraped: ScrapedVehicle,
        now: datetime,
        result: ReconciliationResult,
    ) -> None:
        vehicle = CompetitorVehicle(
            id=uuid.uuid4(),
            dealer_id=dealer_id,
            fingerprint=fingerprint,
            external_url=scraped.external_url,
            brand=scraped.brand,
            model=scraped.model,
            status=VehicleStatus.IN_STOCK,
            first_seen_at=now,
            last_seen_at=now,
            variant=scraped.variant,
            build_year=scraped.build_year,
            mileage=scraped.mileage,
            mileage_bucket=mileage_bucket(scraped.mileage),
            price=_to_decimal(scraped.price),
            fuel_type=scraped.fuel_type,
            transmission=scraped.transmission,
            body_type=scraped.body_type,
            color=scraped.color,
            image_url=scraped.image_url,
        )
        self._repository.insert_vehicle(vehicle)
        result.vehicles_new += 1
        log_event(
            logger,
            logging.INFO,
            "vehicle_new",
            dealer_id=dealer_id,
            vehicle_id=vehicle.id,
            fingerprint=fingerprint,
        )

    def _observe(
        self,
        stored: CompetitorVehicle,
        scraped: ScrapedVehicle,
        now: datetime,
        result: ReconciliationResult,
    ) -> None:
        changes: dict[str, Any] = {
            "external_url": scraped.external_url,
            "last_seen_at": now,
            "consecutive_missing_scrapes": 0,
            "total_stock_days": _stock_days(stored.first_seen_at, now),
        }
        for name in DISPLAY_FIELDS:
            value = getattr(scraped, name)
            if value is not None:
                changes[name] = value

        reappeared = stored.status != VehicleStatus.IN_STOCK
        if reappeared:
            changes["status"] = VehicleStatus.IN_STOCK
            changes["sold_at"] = None
            changes["reappeared_count"] = stored.reappeared_count + 1

        old_price = _to_decimal(stored.price)
        new_price = _to_decimal(scraped.price)
        price_entry: PriceHistoryEntry | None = None
        if new_price is not None:
            changes["price"] = new_price
            if old_price is not None and new_price != old_price:
                price_entry = PriceHistoryEntry(
                    vehicle_id=stored.id,
                    old_price=old_price,
                    new_price=new_price,
                    price_change=new_price - old_price,
                    recorded_at=now,
                )

        if price_entry is not None:
            self._repository.insert_price_history(price_entry)
        self._repository.update_vehicle(stored.id, changes)

        if price_entry is not None:
            result.price_changes += 1
            log_event(
                logger,
                logging.INFO,
                "vehicle_price_changed",
                dealer_id=stored.dealer_id,
                vehicle_id=stored.id,
                old_price=price_entry.old_price,
                new_price=price_entry.new_price,
                price_change=price_entry.price_change,
            )
        if reappeared:
            result.vehicles_reappeared += 1
            log_event(
                logger,
                logging.INFO,
                "vehicle_reappeared",
                dealer_id=stored.dealer_id,
                vehicle_id=stored.id,
                fingerprint=stored.fingerprint,
                reappeared_count=changes["reappeared_count"],
            )

    def _record_miss(
        self,
        stored: CompetitorVehicle,
        now: datetime,
        result: ReconciliationResult,
    ) -> None:
        misses = stored.consecutive_missing_scrapes + 1
        if misses < self._miss_threshold:
            self._repository.update_vehicle(
                stored.id,
                {"consecutive_missing_scrapes": misses},
            )
            result.vehicles_missing += 1
            log_event(
                logger,
                logging.INFO,
                "vehicle_missed",
                dealer_id=stored.dealer_id,
                vehicle_id=stored.id,
                consecutive_missing_scrapes=misses,
            )
            return

        self._repository.update_vehicle(
            stored.id,
            {
                "consecutive_missing_scrapes": misses,
                "status": VehicleStatus.SOLD,
                "sold_at": now,
                "total_stock_days": _stock_days(stored.first_seen_at, now),
            },
        )
        result.vehicles_missing += 1
        result.vehicles_sold += 1
        log_event(
            logger,
            logging.INFO,
            "vehicle_sold",
            dealer_id=stored.dealer_id,
            vehicle_id=stored.id,
            fingerprint=stored.fingerprint,
            consecutive_missing_scrapes=misses,
        )

    @staticmethod
    def _write_failed(
        result: ReconciliationResult,
        dealer_id: uuid.UUID,
        fingerprint: str,
        exc: StorageError,
    ) -> None:
        result.failed_writes += 1
        log_event(
            logger,
            logging.WARNING,
            "vehicle_write_failed",
            dealer_id=dealer_id,
            fingerprint=fingerprint,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
