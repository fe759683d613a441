"""
tests/test_scrape_orchestrator.py

Pytest unit tests for ScrapeRunOrchestrator with stubbed fetcher and parser.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from app.domain.competitor_inventory import ScrapedVehicle, ScrapeRunStatus, VehicleStatus
from app.inventory.errors import ScrapeRunError
from app.inventory.orchestrator import ScrapeRunOrchestrator
from app.scraping.config.models import CompetitorInventorySettings
from app.scraping.fetcher import FetchedPage, FetchError
from app.scraping.parsing.base import ListingParser
from app.scraping.rate_limiter import HostRateLimiter
from db.repositories.errors import DealerNotFoundError, StorageWriteError

BASE_URL = "https://dealer.example/aanbod"


class StubFetcher:
    """Serves canned markup (or raises canned errors) per URL."""

    def __init__(self, pages: dict[str, str | Exception]) -> None:
        self.pages = pages
        self.requested: list[str] = []

    def fetch(self, url: str, headers: dict[str, str] | None = None) -> FetchedPage:
        self.requested.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(f"Failed to fetch {url}: HTTP 404", url=url, status_code=404)
        if isinstance(page, Exception):
            raise page
        return FetchedPage(url=url, status_code=200, text=page)


class StubParser(ListingParser):
    """Maps markup keys to listings; markup ending in '+next' has a next page."""

    def __init__(self, listings: dict[str, list[ScrapedVehicle]]) -> None:
        self.listings = listings

    def parse(self, markup: str, base_url: str) -> list[ScrapedVehicle]:
        return list(self.listings.get(markup, []))

    def has_next_page(self, markup: str, current_page: int) -> bool:
        return markup.endswith("+next")


def _page_url(page: int) -> str:
    return BASE_URL if page == 1 else f"{BASE_URL}?page={page}"


@pytest.fixture()
def settings() -> CompetitorInventorySettings:
    return CompetitorInventorySettings(page_delay_seconds=0.0, max_pages=5)


@pytest.fixture()
def build(repository, clock, settings):
    def _build(pages: dict[str, str | Exception], listings: dict[str, list[ScrapedVehicle]]):
        fetcher = StubFetcher(pages)
        orchestrator = ScrapeRunOrchestrator(
            repository=repository,
            fetcher=fetcher,  # type: ignore[arg-type]
            parser=StubParser(listings),
            settings=settings,
            clock=clock,
            rate_limiter=HostRateLimiter(sleep=lambda _seconds: None),
        )
        return orchestrator, fetcher

    return _build


# ---------------------------------------------------------------------------
# Successful runs
# ---------------------------------------------------------------------------


class TestSuccessfulRun:
    def test_reconciles_and_logs_success(self, build, repository, dealer, clock, make_vehicle) -> None:
        orchestrator, _ = build(
            {BASE_URL: "p1"},
            {"p1": [make_vehicle(), make_vehicle(model="A6")]},
        )

        result = orchestrator.run(dealer.id)

        assert result.success is True
        assert result.dealer_id == dealer.id
        assert result.message == "Scrape completed: 2 vehicles found, 2 new, 0 sold, 0 reappeared"
        assert result.stats.vehicles_found == 2
        assert result.stats.vehicles_new == 2

        (log,) = repository.run_logs
        assert log.status == ScrapeRunStatus.SUCCESS
        assert log.vehicles_found == 2
        assert log.vehicles_new == 2
        assert log.error_message is None
        assert log.created_at == clock.now

        (summary,) = repository.summaries
        assert summary["status"] == ScrapeRunStatus.SUCCESS
        assert summary["vehicles_count"] == 2
        assert repository.dealers[dealer.id].last_scrape_vehicles_count == 2

    def test_reconciliation_runs_under_dealer_lock(self, build, repository, dealer, make_vehicle) -> None:
        orchestrator, _ = build({BASE_URL: "p1"}, {"p1": [make_vehicle()]})

        orchestrator.run(dealer.id)

        assert repository.lock_events == [("acquire", dealer.id), ("release", dealer.id)]

    def test_empty_storefront_is_not_an_error(self, build, repository, dealer, make_vehicle) -> None:
        first, _ = build({BASE_URL: "p1"}, {"p1": [make_vehicle()]})
        first.run(dealer.id)
        empty, _ = build({BASE_URL: "empty"}, {})

        result = empty.run(dealer.id)

        assert result.success is True
        assert result.stats.vehicles_found == 0
        assert repository.run_logs[-1].vehicles_found == 0
        (vehicle,) = repository.vehicles_for(dealer.id)
        assert vehicle.consecutive_missing_scrapes == 1

    def test_reports_sold_reappeared_and_price_changes(self, build, repository, dealer, make_vehicle) -> None:
        listed, _ = build({BASE_URL: "p1"}, {"p1": [make_vehicle(price=Decimal("20000"))]})
        empty, _ = build({BASE_URL: "empty"}, {})
        listed.run(dealer.id)
        empty.run(dealer.id)
        sold_run = empty.run(dealer.id)
        cheaper, _ = build({BASE_URL: "p1"}, {"p1": [make_vehicle(price=Decimal("19500"))]})

        back = cheaper.run(dealer.id)

        assert sold_run.stats.vehicles_sold == 1
        assert back.stats.vehicles_reappeared == 1
        assert back.stats.price_changes == 1
        assert back.message.endswith("0 sold, 1 reappeared")
        assert repository.vehicles_for(dealer.id)[0].status == VehicleStatus.IN_STOCK


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


class TestPagination:
    def test_follows_next_pages_and_dedupes_by_url(self, build, dealer, make_vehicle) -> None:
        shared = make_vehicle(external_url="https://dealer.example/auto/shared")
        orchestrator, fetcher = build(
            {_page_url(1): "p1+next", _page_url(2): "p2"},
            {
                "p1+next": [shared, make_vehicle(model="A6")],
                "p2": [shared, make_vehicle(model="Q5")],
            },
        )

        result = orchestrator.run(dealer.id)

        assert fetcher.requested == [_page_url(1), _page_url(2)]
        assert result.stats.vehicles_found == 3

    def test_stops_when_page_adds_nothing_new(self, build, dealer, make_vehicle) -> None:
        same = [make_vehicle(external_url="https://dealer.example/auto/1")]
        orchestrator, fetcher = build(
            {_page_url(1): "p1+next", _page_url(2): "p2+next", _page_url(3): "p3"},
            {"p1+next": same, "p2+next": same},
        )

        result = orchestrator.run(dealer.id)

        assert fetcher.requested == [_page_url(1), _page_url(2)]
        assert result.stats.vehicles_found == 1

    def test_later_page_failure_keeps_collected_listings(self, build, repository, dealer, make_vehicle) -> None:
        orchestrator, fetcher = build(
            {_page_url(1): "p1+next"},
            {"p1+next": [make_vehicle()]},
        )

        result = orchestrator.run(dealer.id)

        assert fetcher.requested == [_page_url(1), _page_url(2)]
        assert result.success is True
        assert result.stats.vehicles_new == 1
        assert repository.run_logs[-1].status == ScrapeRunStatus.SUCCESS

    def test_respects_max_pages(self, repository, clock, dealer, make_vehicle) -> None:
        pages = {_page_url(page): f"p{page}+next" for page in range(1, 6)}
        listings = {
            f"p{page}+next": [make_vehicle(model=f"M{page}")] for page in range(1, 6)
        }
        fetcher = StubFetcher(pages)
        orchestrator = ScrapeRunOrchestrator(
            repository=repository,
            fetcher=fetcher,  # type: ignore[arg-type]
            parser=StubParser(listings),
            settings=CompetitorInventorySettings(page_delay_seconds=0.0, max_pages=3),
            clock=clock,
            rate_limiter=HostRateLimiter(sleep=lambda _seconds: None),
        )

        result = orchestrator.run(dealer.id)

        assert len(fetcher.requested) == 3
        assert result.stats.vehicles_found == 3

    def test_waits_between_page_requests(self, repository, clock, dealer, make_vehicle) -> None:
        slept: list[float] = []
        ticks = iter([0.0, 0.1])
        limiter = HostRateLimiter(sleep=slept.append, monotonic=lambda: next(ticks))
        orchestrator = ScrapeRunOrchestrator(
            repository=repository,
            fetcher=StubFetcher({_page_url(1): "p1+next", _page_url(2): "p2"}),  # type: ignore[arg-type]
            parser=StubParser({"p1+next": [make_vehicle()], "p2": [make_vehicle(model="A6")]}),
            settings=CompetitorInventorySettings(page_delay_seconds=0.75, max_pages=5),
            clock=clock,
            rate_limiter=limiter,
        )

        orchestrator.run(dealer.id)

        assert slept == [pytest.approx(0.65)]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_unknown_dealer_aborts_before_fetch(self, build, repository) -> None:
        orchestrator, fetcher = build({}, {})
        missing = repository.add_dealer().id
        del repository.dealers[missing]

        with pytest.raises(DealerNotFoundError):
            orchestrator.run(missing)

        assert fetcher.requested == []
        assert repository.run_logs == []

    def test_fetch_failure_writes_error_log(self, build, repository, dealer, make_vehicle) -> None:
        seeded, _ = build({BASE_URL: "p1"}, {"p1": [make_vehicle()]})
        seeded.run(dealer.id)
        before = repository.vehicles_for(dealer.id)
        error = FetchError("Failed to fetch page: HTTP 503", url=BASE_URL, status_code=503)
        orchestrator, _ = build({BASE_URL: error}, {})

        with pytest.raises(ScrapeRunError) as excinfo:
            orchestrator.run(dealer.id)

        assert excinfo.value.__cause__ is error
        log = repository.run_logs[-1]
        assert log.status == ScrapeRunStatus.ERROR
        assert log.vehicles_found == 0
        assert log.error_message == "Failed to fetch page: HTTP 503"
        summary = repository.summaries[-1]
        assert summary["status"] == ScrapeRunStatus.ERROR
        assert summary["vehicles_count"] is None
        assert repository.dealers[dealer.id].last_scrape_vehicles_count == 1
        assert repository.vehicles_for(dealer.id) == before

    def test_baseline_failure_writes_error_log(self, build, repository, dealer, make_vehicle) -> None:
        orchestrator, _ = build({BASE_URL: "p1"}, {"p1": [make_vehicle()]})
        repository.fail_list_vehicles = True

        with pytest.raises(ScrapeRunError):
            orchestrator.run(dealer.id)

        assert repository.run_logs[-1].status == ScrapeRunStatus.ERROR
        assert repository.vehicles == {}

    def test_error_log_failure_still_raises_original(self, build, repository, dealer) -> None:
        error = FetchError("timed out", url=BASE_URL)
        orchestrator, _ = build({BASE_URL: error}, {})
        repository.fail_run_log_statuses.add(ScrapeRunStatus.ERROR)

        with pytest.raises(ScrapeRunError) as excinfo:
            orchestrator.run(dealer.id)

        assert excinfo.value.__cause__ is error
        assert repository.run_logs == []

    def test_success_log_failure_surfaces(self, build, repository, dealer, make_vehicle) -> None:
        orchestrator, _ = build({BASE_URL: "p1"}, {"p1": [make_vehicle()]})
        repository.fail_run_log_statuses.add(ScrapeRunStatus.SUCCESS)

        with pytest.raises(StorageWriteError):
            orchestrator.run(dealer.id)

        assert len(repository.vehicles_for(dealer.id)) == 1

    def test_summary_failure_does_not_fail_run(self, build, repository, dealer, make_vehicle) -> None:
        orchestrator, _ = build({BASE_URL: "p1"}, {"p1": [make_vehicle()]})
        repository.fail_dealer_summary = True

        result = orchestrator.run(dealer.id)

        assert result.success is True
        assert repository.run_logs[-1].status == ScrapeRunStatus.SUCCESS
