"""
Storage layer interface for competitor inventory state.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any

from app.domain.competitor_inventory import (
    CompetitorDealer,
    CompetitorVehicle,
    PriceHistoryEntry,
    ScrapeRunLog,
)


class VehicleRepository(ABC):
    """
    Durable store for dealers, fingerprinted vehicles, the price ledger and run logs.

    Every method raises a `StorageError` subclass on connectivity or
    constraint failures.
    """

    @abstractmethod
    def get_dealer(self, dealer_id: uuid.UUID) -> CompetitorDealer:
        """
        Load one dealer or raise `DealerNotFoundError`.
        """

    @abstractmethod
    def list_vehicles(self, dealer_id: uuid.UUID) -> list[CompetitorVehicle]:
        """
        Return every stored vehicle of the dealer, whatever its status.
        """

    @abstractmethod
    def insert_vehicle(self, vehicle: CompetitorVehicle) -> None:
        ...

    @abstractmethod
    def update_vehicle(self, vehicle_id: uuid.UUID, changes: Mapping[str, Any]) -> None:
        """
        Apply a partial update; only the given columns change.
        """

    @abstractmethod
    def insert_price_history(self, entry: PriceHistoryEntry) -> None:
        """
        Record a price change.

        Implementations may stage the row until the next vehicle update of
        the same run, so that both land atomically.
        """

    @abstractmethod
    def insert_scrape_run_log(self, log: ScrapeRunLog) -> None:
        ...

    @abstractmethod
    def update_dealer_summary(
        self,
        dealer_id: uuid.UUID,
        *,
        last_scraped_at: datetime,
        status: str,
        vehicles_count: int | None,
    ) -> None:
        """
        Refresh the dealer's last-scrape fields; a None count keeps the stored one.
        """

    @abstractmethod
    def dealer_lock(self, dealer_id: uuid.UUID) -> AbstractContextManager[None]:
        """
        Mutual exclusion for reconciliation runs of the same dealer.
        """
