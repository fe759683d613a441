"""
SQLAlchemy-backed vehicle repository.

Each vehicle mutation commits on its own, so a crash mid-run leaves every
already-processed vehicle consistent. Price history rows are only flushed and
become durable with the vehicle update that follows them.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import fields
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.competitor_inventory import (
    CompetitorDealer,
    CompetitorVehicle,
    PriceHistoryEntry,
    ScrapeRunLog,
)
from app.scraping.storage.base import VehicleRepository
from db.models.competitor_dealer import CompetitorDealerRecord
from db.models.competitor_vehicle import CompetitorVehicleRecord
from db.repositories.competitor_inventory_repository import CompetitorInventoryRepository
from db.repositories.errors import (
    DealerNotFoundError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

_local_locks: dict[uuid.UUID, threading.Lock] = {}
_local_locks_guard = threading.Lock()


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _advisory_key(dealer_id: uuid.UUID) -> int:
    # pg_advisory_lock takes a signed bigint.
    return int.from_bytes(dealer_id.bytes[:8], "big", signed=True)


def _local_lock(dealer_id: uuid.UUID) -> threading.Lock:
    with _local_locks_guard:
        return _local_locks.setdefault(dealer_id, threading.Lock())


def _to_dealer(record: CompetitorDealerRecord) -> CompetitorDealer:
    return CompetitorDealer(
        id=record.id,
        scrape_url=record.scrape_url,
        name=record.name,
        is_active=record.is_active,
        last_scraped_at=_as_utc(record.last_scraped_at),
        last_scrape_status=record.last_scrape_status,
        last_scrape_vehicles_count=record.last_scrape_vehicles_count,
    )


def _to_vehicle(record: CompetitorVehicleRecord) -> CompetitorVehicle:
    return CompetitorVehicle(
        id=record.id,
        dealer_id=record.dealer_id,
        fingerprint=record.fingerprint,
        external_url=record.external_url,
        brand=record.brand,
        model=record.model,
        status=record.status,
        first_seen_at=_as_utc(record.first_seen_at),
        last_seen_at=_as_utc(record.last_seen_at),
        variant=record.variant,
        build_year=record.build_year,
        mileage=record.mileage,
        mileage_bucket=record.mileage_bucket,
        price=record.price,
        fuel_type=record.fuel_type,
        transmission=record.transmission,
        body_type=record.body_type,
        color=record.color,
        image_url=record.image_url,
        sold_at=_as_utc(record.sold_at),
        consecutive_missing_scrapes=record.consecutive_missing_scrapes,
        total_stock_days=record.total_stock_days,
        reappeared_count=record.reappeared_count,
    )


class SQLAlchemyVehicleRepository(VehicleRepository):
    """
    Persist competitor inventory state through the query repository and DB session.
    """

    def __init__(self, *, session: Session) -> None:
        self._session = session
        self._repository = CompetitorInventoryRepository(session)

    def get_dealer(self, dealer_id: uuid.UUID) -> CompetitorDealer:
        try:
            record = self._repository.get_dealer(dealer_id)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageReadError(f"Failed to load dealer {dealer_id}: {exc}") from exc
        if record is None:
            raise DealerNotFoundError(dealer_id)
        return _to_dealer(record)

    def list_vehicles(self, dealer_id: uuid.UUID) -> list[CompetitorVehicle]:
        try:
            records = self._repository.list_vehicles(dealer_id)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageReadError(
                f"Failed to load vehicles for dealer {dealer_id}: {exc}"
            ) from exc
        return [_to_vehicle(record) for record in records]

    def insert_vehicle(self, vehicle: CompetitorVehicle) -> None:
        values = {field.name: getattr(vehicle, field.name) for field in fields(vehicle)}
        try:
            self._repository.add_vehicle(**values)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageWriteError(
                f"Failed to insert vehicle {vehicle.fingerprint}: {exc}"
            ) from exc

    def update_vehicle(self, vehicle_id: uuid.UUID, changes: Mapping[str, Any]) -> None:
        try:
            record = self._repository.update_vehicle(vehicle_id=vehicle_id, changes=changes)
            if record is None:
                self._session.rollback()
                raise StorageWriteError(f"Vehicle not found: {vehicle_id}")
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageWriteError(f"Failed to update vehicle {vehicle_id}: {exc}") from exc

    def insert_price_history(self, entry: PriceHistoryEntry) -> None:
        try:
            self._repository.add_price_history(
                vehicle_id=entry.vehicle_id,
                old_price=entry.old_price,
                new_price=entry.new_price,
                price_change=entry.price_change,
                created_at=entry.recorded_at,
            )
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageWriteError(
                f"Failed to record price change for vehicle {entry.vehicle_id}: {exc}"
            ) from exc

    def insert_scrape_run_log(self, log: ScrapeRunLog) -> None:
        try:
            self._repository.add_scrape_log(
                dealer_id=log.dealer_id,
                status=log.status,
                vehicles_found=log.vehicles_found,
                vehicles_new=log.vehicles_new,
                vehicles_sold=log.vehicles_sold,
                vehicles_reappeared=log.vehicles_reappeared,
                error_message=log.error_message,
                duration_ms=log.duration_ms,
                created_at=log.created_at,
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageWriteError(
                f"Failed to write scrape log for dealer {log.dealer_id}: {exc}"
            ) from exc

    def update_dealer_summary(
        self,
        dealer_id: uuid.UUID,
        *,
        last_scraped_at: datetime,
        status: str,
        vehicles_count: int | None,
    ) -> None:
        try:
            record = self._repository.update_dealer_summary(
                dealer_id=dealer_id,
                last_scraped_at=last_scraped_at,
                status=status,
                vehicles_count=vehicles_count,
            )
            if record is None:
                self._session.rollback()
                raise DealerNotFoundError(dealer_id)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageWriteError(
                f"Failed to update scrape summary for dealer {dealer_id}: {exc}"
            ) from exc

    @contextmanager
    def dealer_lock(self, dealer_id: uuid.UUID) -> Iterator[None]:
        engine = self._session.get_bind().engine
        if engine.dialect.name != "postgresql":
            with _local_lock(dealer_id):
                yield
            return

        key = _advisory_key(dealer_id)
        connection = None
        try:
            connection = engine.connect()
            connection.execute(text("SELECT pg_advisory_lock(:key)"), {"key": key})
        except SQLAlchemyError as exc:
            if connection is not None:
                connection.close()
            raise StorageError(f"Failed to lock dealer {dealer_id}: {exc}") from exc

        try:
            yield
        finally:
            try:
                connection.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": key})
            finally:
                connection.close()
