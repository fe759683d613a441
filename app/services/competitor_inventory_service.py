"""
app/services/competitor_inventory_service.py

Service wiring for competitor inventory scrape runs.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager
from functools import lru_cache

import requests
from sqlalchemy.orm import Session

from app.domain.competitor_inventory import DealerRunOutcome, ScrapeRunResult
from app.inventory.errors import ScrapeRunError
from app.inventory.orchestrator import ScrapeRunOrchestrator
from app.scraping.config import CompetitorInventorySettings, get_competitor_inventory_settings
from app.scraping.fetcher import PageFetcher
from app.scraping.parsing import HTMLListingParser, ListingParser
from app.scraping.rate_limiter import HostRateLimiter
from app.scraping.storage import SQLAlchemyVehicleRepository
from db.repositories.competitor_inventory_repository import CompetitorInventoryRepository
from db.repositories.errors import StorageError
from db.session import session_scope

logger = logging.getLogger(__name__)


class CompetitorInventoryService:
    """
    Builds the scrape pipeline per DB session and runs dealers through it.
    """

    def __init__(
        self,
        *,
        settings: CompetitorInventorySettings | None = None,
        parser: ListingParser | None = None,
        http_session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self._settings = settings or get_competitor_inventory_settings()
        self._parser = parser or HTMLListingParser()
        self._http_session_factory = http_session_factory
        # Shared so that concurrent dealers on one host are still paced.
        self._rate_limiter = HostRateLimiter()

    @property
    def settings(self) -> CompetitorInventorySettings:
        return self._settings

    def build_orchestrator(
        self,
        *,
        db: Session,
        http_session: requests.Session,
    ) -> ScrapeRunOrchestrator:
        return ScrapeRunOrchestrator(
            repository=SQLAlchemyVehicleRepository(session=db),
            fetcher=PageFetcher(session=http_session, settings=self._settings),
            parser=self._parser,
            settings=self._settings,
            rate_limiter=self._rate_limiter,
        )

    def run_scrape(self, *, db: Session, dealer_id: uuid.UUID) -> ScrapeRunResult:
        http_session = self._http_session_factory()
        try:
            orchestrator = self.build_orchestrator(db=db, http_session=http_session)
            return orchestrator.run(dealer_id)
        finally:
            http_session.close()

    def active_dealer_ids(self, *, db: Session) -> list[uuid.UUID]:
        return [dealer.id for dealer in CompetitorInventoryRepository(db).list_active_dealers()]

    def run_dealers(
        self,
        dealer_ids: Iterable[uuid.UUID],
        *,
        max_workers: int | None = None,
        session_factory: Callable[[], AbstractContextManager[Session]] = session_scope,
    ) -> list[DealerRunOutcome]:
        """
        Scrape several dealers in parallel, one DB session per dealer.

        A failing dealer is reported in its outcome and never stops the others.
        """

        selected = list(dict.fromkeys(dealer_ids))
        if not selected:
            return []

        def _run_one(dealer_id: uuid.UUID) -> DealerRunOutcome:
            with session_factory() as db:
                try:
                    result = self.run_scrape(db=db, dealer_id=dealer_id)
                except (ScrapeRunError, StorageError) as exc:
                    logger.warning("Competitor scrape failed dealer_id=%s: %s", dealer_id, exc)
                    return DealerRunOutcome(dealer_id=dealer_id, error=str(exc))
            return DealerRunOutcome(dealer_id=dealer_id, result=result)

        workers = max(1, min(max_workers or self._settings.scheduler_max_workers, len(selected)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="competitor-scrape") as pool:
            return list(pool.map(_run_one, selected))

    def run_all_active(
        self,
        *,
        max_workers: int | None = None,
        session_factory: Callable[[], AbstractContextManager[Session]] = session_scope,
    ) -> list[DealerRunOutcome]:
        with session_factory() as db:
            dealer_ids = self.active_dealer_ids(db=db)
        return self.run_dealers(
            dealer_ids,
            max_workers=max_workers,
            session_factory=session_factory,
        )


@lru_cache(maxsize=1)
def get_competitor_inventory_service() -> CompetitorInventoryService:
    """
    Build and cache competitor inventory service.
    """

    return CompetitorInventoryService()
