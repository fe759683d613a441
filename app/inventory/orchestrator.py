"""
Scrape run orchestration for one competitor dealer.

Sequence: load dealer -> fetch and parse listing pages -> reconcile under the
dealer lock -> write the run log -> refresh the dealer summary. Every failure
after the dealer is loaded still attempts an error run log.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from datetime import datetime

from app.domain.competitor_inventory import (
    CompetitorDealer,
    ReconciliationResult,
    ScrapedVehicle,
    ScrapeRunLog,
    ScrapeRunResult,
    ScrapeRunStats,
    ScrapeRunStatus,
    utc_now,
)
from app.inventory.errors import ScrapeRunError
from app.inventory.reconciliation import ReconciliationEngine
from app.scraping.config.models import CompetitorInventorySettings
from app.scraping.fetcher import FetchError, PageFetcher
from app.scraping.logging_utils import elapsed_ms, log_event
from app.scraping.parsing.base import ListingParser
from app.scraping.rate_limiter import HostRateLimiter
from app.scraping.storage.base import VehicleRepository
from db.repositories.errors import StorageError

logger = logging.getLogger(__name__)


def _success_message(result: ReconciliationResult) -> str:
    return (
        f"Scrape completed: {result.vehicles_found} vehicles found, "
        f"{result.vehicles_new} new, {result.vehicles_sold} sold, "
        f"{result.vehicles_reappeared} reappeared"
    )


class ScrapeRunOrchestrator:
    """
    Runs one dealer scrape end to end.
    """

    def __init__(
        self,
        *,
        repository: VehicleRepository,
        fetcher: PageFetcher,
        parser: ListingParser,
        settings: CompetitorInventorySettings,
        clock: Callable[[], datetime] = utc_now,
        rate_limiter: HostRateLimiter | None = None,
    ) -> None:
        self._repository = repository
        self._fetcher = fetcher
        self._parser = parser
        self._settings = settings
        self._clock = clock
        self._rate_limiter = rate_limiter or HostRateLimiter()
        self._engine = ReconciliationEngine(
            repository=repository,
            miss_threshold=settings.miss_threshold,
            clock=clock,
        )

    def run(self, dealer_id: uuid.UUID) -> ScrapeRunResult:
        """
        Scrape and reconcile one dealer.

        Raises `DealerNotFoundError` before anything is fetched, `ScrapeRunError`
        when fetching or reconciling fails, and `StorageError` when the final
        run log cannot be written.
        """

        started = time.monotonic()
        dealer = self._repository.get_dealer(dealer_id)
        log_event(
            logger,
            logging.INFO,
            "scrape_run_started",
            dealer_id=dealer.id,
            dealer_name=dealer.name,
            scrape_url=dealer.scrape_url,
        )

        try:
            scraped = self._collect(dealer)
            with self._repository.dealer_lock(dealer.id):
                result = self._engine.reconcile(dealer_id=dealer.id, scraped=scraped)
        except Exception as exc:
            duration_ms = elapsed_ms(started)
            self._record_failure(dealer, exc, duration_ms)
            raise ScrapeRunError(
                str(exc) or exc.__class__.__name__,
                stats=ScrapeRunStats(duration_ms=duration_ms),
            ) from exc

        duration_ms = elapsed_ms(started)
        finished_at = self._clock()
        stats = ScrapeRunStats(
            vehicles_found=result.vehicles_found,
            vehicles_new=result.vehicles_new,
            vehicles_sold=result.vehicles_sold,
            vehicles_reappeared=result.vehicles_reappeared,
            price_changes=result.price_changes,
            duration_ms=duration_ms,
        )

        try:
            self._repository.insert_scrape_run_log(
                ScrapeRunLog(
                    dealer_id=dealer.id,
                    status=ScrapeRunStatus.SUCCESS,
                    vehicles_found=stats.vehicles_found,
                    vehicles_new=stats.vehicles_new,
                    vehicles_sold=stats.vehicles_sold,
                    vehicles_reappeared=stats.vehicles_reappeared,
                    duration_ms=duration_ms,
                    created_at=finished_at,
                )
            )
        except StorageError as exc:
            log_event(
                logger,
                logging.ERROR,
                "scrape_log_write_failed",
                dealer_id=dealer.id,
                status=ScrapeRunStatus.SUCCESS,
                error=str(exc),
            )
            raise

        self._update_summary(
            dealer,
            last_scraped_at=finished_at,
            status=ScrapeRunStatus.SUCCESS,
            vehicles_count=stats.vehicles_found,
        )

        message = _success_message(result)
        log_event(
            logger,
            logging.INFO,
            "scrape_run_completed",
            dealer_id=dealer.id,
            message=message,
            price_changes=stats.price_changes,
            duplicates_skipped=result.duplicates_skipped,
            failed_writes=result.failed_writes,
            duration_ms=duration_ms,
        )
        return ScrapeRunResult(dealer_id=dealer.id, success=True, message=message, stats=stats)

    def _collect(self, dealer: CompetitorDealer) -> list[ScrapedVehicle]:
        collected: list[ScrapedVehicle] = []
        seen_urls: set[str] = set()
        max_pages = max(1, self._settings.max_pages)

        for page in range(1, max_pages + 1):
            url = self._parser.build_page_url(dealer.scrape_url, page)
            self._rate_limiter.wait(
                url=url,
                min_interval_seconds=self._settings.page_delay_seconds,
            )
            try:
                fetched = self._fetcher.fetch(url)
            except FetchError as exc:
                if page == 1:
                    log_event(
                        logger,
                        logging.ERROR,
                        "page_fetch_failed",
                        dealer_id=dealer.id,
                        page=page,
                        url=url,
                        status_code=exc.status_code,
                        error=str(exc),
                    )
                    raise
                self._pagination_stopped(dealer, page, "fetch_failed", error=str(exc))
                break

            added = 0
            for vehicle in self._parser.parse(fetched.text, url):
                if vehicle.external_url in seen_urls:
                    continue
                seen_urls.add(vehicle.external_url)
                collected.append(vehicle)
                added += 1

            log_event(
                logger,
                logging.INFO,
                "page_fetched",
                dealer_id=dealer.id,
                page=page,
                url=url,
                status_code=fetched.status_code,
                listings_added=added,
            )

            if added == 0:
                self._pagination_stopped(dealer, page, "no_new_listings")
                break
            if not self._parser.has_next_page(fetched.text, page):
                break
            if page == max_pages:
                self._pagination_stopped(dealer, page, "max_pages")

        return collected

    def _pagination_stopped(
        self,
        dealer: CompetitorDealer,
        page: int,
        reason: str,
        **fields: object,
    ) -> None:
        log_event(
            logger,
            logging.INFO if reason != "fetch_failed" else logging.WARNING,
            "pagination_stopped",
            dealer_id=dealer.id,
            page=page,
            reason=reason,
            **fields,
        )

    def _record_failure(
        self,
        dealer: CompetitorDealer,
        exc: Exception,
        duration_ms: int,
    ) -> None:
        error_message = str(exc) or exc.__class__.__name__
        failed_at = self._clock()
        log_event(
            logger,
            logging.ERROR,
            "scrape_run_failed",
            dealer_id=dealer.id,
            error=error_message,
            error_type=exc.__class__.__name__,
            duration_ms=duration_ms,
        )

        try:
            self._repository.insert_scrape_run_log(
                ScrapeRunLog(
                    dealer_id=dealer.id,
                    status=ScrapeRunStatus.ERROR,
                    vehicles_found=0,
                    vehicles_new=0,
                    vehicles_sold=0,
                    vehicles_reappeared=0,
                    duration_ms=duration_ms,
                    created_at=failed_at,
                    error_message=error_message,
                )
            )
        except StorageError as log_exc:
            log_event(
                logger,
                logging.ERROR,
                "scrape_log_write_failed",
                dealer_id=dealer.id,
                status=ScrapeRunStatus.ERROR,
                error=str(log_exc),
            )

        self._update_summary(
            dealer,
            last_scraped_at=failed_at,
            status=ScrapeRunStatus.ERROR,
            vehicles_count=None,
        )

    def _update_summary(
        self,
        dealer: CompetitorDealer,
        *,
        last_scraped_at: datetime,
        status: str,
        vehicles_count: int | None,
    ) -> None:
        try:
            self._repository.update_dealer_summary(
                dealer.id,
                last_scraped_at=last_scraped_at,
                status=status,
                vehicles_count=vehicles_count,
            )
        except StorageError as exc:
            log_event(
                logger,
                logging.WARNING,
                "dealer_summary_write_failed",
                dealer_id=dealer.id,
                status=status,
                error=str(exc),
            )
