"""
tests/conftest.py

Shared fixtures: an in-memory vehicle repository with failure injection and a
controllable clock.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pytest

from app.domain.competitor_inventory import (
    CompetitorDealer,
    CompetitorVehicle,
    PriceHistoryEntry,
    ScrapedVehicle,
    ScrapeRunLog,
)
from app.scraping.storage.base import VehicleRepository
from db.repositories.errors import DealerNotFoundError, StorageReadError, StorageWriteError


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


class InMemoryVehicleRepository(VehicleRepository):
    """
    Dict-backed repository mirroring the SQLAlchemy adapter's semantics.

    Price history entries are staged and only kept when the next vehicle
    update succeeds.
    """

    def __init__(self) -> None:
        self.dealers: dict[uuid.UUID, CompetitorDealer] = {}
        self.vehicles: dict[uuid.UUID, CompetitorVehicle] = {}
        self.price_history: list[PriceHistoryEntry] = []
        self.run_logs: list[ScrapeRunLog] = []
        self.summaries: list[dict[str, Any]] = []
        self.lock_events: list[tuple[str, uuid.UUID]] = []
        self._staged_history: list[PriceHistoryEntry] = []

        self.fail_list_vehicles = False
        self.fail_insert_fingerprints: set[str] = set()
        self.fail_update_ids: set[uuid.UUID] = set()
        self.fail_run_log_statuses: set[str] = set()
        self.fail_dealer_summary = False

    # -- helpers -------------------------------------------------------------

    def add_dealer(self, scrape_url: str = "https://dealer.example/aanbod") -> CompetitorDealer:
        dealer = CompetitorDealer(id=uuid.uuid4(), scrape_url=scrape_url, name="Autohuis Test")
        self.dealers[dealer.id] = dealer
        return dealer

    def vehicles_for(self, dealer_id: uuid.UUID) -> list[CompetitorVehicle]:
        return [vehicle for vehicle in self.vehicles.values() if vehicle.dealer_id == dealer_id]

    def by_fingerprint(self, fingerprint: str) -> CompetitorVehicle:
        matches = [v for v in self.vehicles.values() if v.fingerprint == fingerprint]
        assert len(matches) == 1, f"expected one vehicle for {fingerprint}, got {len(matches)}"
        return matches[0]

    # -- VehicleRepository ---------------------------------------------------

    def get_dealer(self, dealer_id: uuid.UUID) -> CompetitorDealer:
        dealer = self.dealers.get(dealer_id)
        if dealer is None:
            raise DealerNotFoundError(dealer_id)
        return dealer

    def list_vehicles(self, dealer_id: uuid.UUID) -> list[CompetitorVehicle]:
        if self.fail_list_vehicles:
            raise StorageReadError("connection reset while loading vehicles")
        return self.vehicles_for(dealer_id)

    def insert_vehicle(self, vehicle: CompetitorVehicle) -> None:
        if vehicle.fingerprint in self.fail_insert_fingerprints:
            raise StorageWriteError(f"insert failed for {vehicle.fingerprint}")
        self.vehicles[vehicle.id] = vehicle

    def update_vehicle(self, vehicle_id: uuid.UUID, changes: Mapping[str, Any]) -> None:
        if vehicle_id in self.fail_update_ids or vehicle_id not in self.vehicles:
            self._staged_history.clear()
            raise StorageWriteError(f"update failed for {vehicle_id}")
        self.vehicles[vehicle_id] = dataclasses.replace(self.vehicles[vehicle_id], **changes)
        self.price_history.extend(self._staged_history)
        self._staged_history.clear()

    def insert_price_history(self, entry: PriceHistoryEntry) -> None:
        self._staged_history.append(entry)

    def insert_scrape_run_log(self, log: ScrapeRunLog) -> None:
        if log.status in self.fail_run_log_statuses:
            raise StorageWriteError(f"run log write failed ({log.status})")
        self.run_logs.append(log)

    def update_dealer_summary(
        self,
        dealer_id: uuid.UUID,
        *,
        last_scraped_at: datetime,
        status: str,
        vehicles_count: int | None,
    ) -> None:
        if self.fail_dealer_summary:
            raise StorageWriteError("dealer summary write failed")
        dealer = self.get_dealer(dealer_id)
        self.summaries.append(
            {
                "dealer_id": dealer_id,
                "last_scraped_at": last_scraped_at,
                "status": status,
                "vehicles_count": vehicles_count,
            }
        )
        self.dealers[dealer_id] = dataclasses.replace(
            dealer,
            last_scraped_at=last_scraped_at,
            last_scrape_status=status,
            last_scrape_vehicles_count=(
                vehicles_count if vehicles_count is not None else dealer.last_scrape_vehicles_count
            ),
        )

    @contextmanager
    def dealer_lock(self, dealer_id: uuid.UUID) -> Iterator[None]:
        self.lock_events.append(("acquire", dealer_id))
        try:
            yield
        finally:
            self.lock_events.append(("release", dealer_id))


def make_scraped(
    *,
    brand: str = "Audi",
    model: str = "A4",
    build_year: int | None = 2020,
    mileage: int | None = 50_000,
    color: str | None = "Zwart",
    price: Decimal | None = Decimal("20000"),
    external_url: str | None = None,
    **extra: Any,
) -> ScrapedVehicle:
    return ScrapedVehicle(
        external_url=external_url or f"https://dealer.example/occasion/{uuid.uuid4().hex[:8]}",
        brand=brand,
        model=model,
        build_year=build_year,
        mileage=mileage,
        color=color,
        price=price,
        **extra,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 2, 4, 0, tzinfo=timezone.utc))


@pytest.fixture()
def repository() -> InMemoryVehicleRepository:
    return InMemoryVehicleRepository()


@pytest.fixture()
def dealer(repository: InMemoryVehicleRepository) -> CompetitorDealer:
    return repository.add_dealer()


@pytest.fixture()
def make_vehicle() -> Any:
    """Factory for scraped listings; defaults fingerprint to AUDI|A4|2020|25|ZWART."""
    return make_scraped
