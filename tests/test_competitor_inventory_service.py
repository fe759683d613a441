"""
tests/test_competitor_inventory_service.py

Tests for batch dealer runs, the scheduler factory and settings loading.
"""

from __future__ import annotations

import threading
import uuid
from contextlib import nullcontext

import pytest

from app.domain.competitor_inventory import ScrapeRunResult, ScrapeRunStats
from app.inventory.errors import ScrapeRunError
from app.scheduler import jobs
from app.scraping.config import CompetitorInventorySettings, load_competitor_inventory_settings
from app.services.competitor_inventory_service import CompetitorInventoryService
from db.repositories.errors import StorageWriteError


class RecordingService(CompetitorInventoryService):
    """Service whose single-dealer run is replaced by canned outcomes."""

    def __init__(self, failures: dict[uuid.UUID, Exception] | None = None) -> None:
        super().__init__(settings=CompetitorInventorySettings(scheduler_max_workers=3))
        self.failures = failures or {}
        self.calls: list[uuid.UUID] = []
        self._calls_lock = threading.Lock()

    def run_scrape(self, *, db, dealer_id: uuid.UUID) -> ScrapeRunResult:
        with self._calls_lock:
            self.calls.append(dealer_id)
        failure = self.failures.get(dealer_id)
        if failure is not None:
            raise failure
        return ScrapeRunResult(
            dealer_id=dealer_id,
            success=True,
            message="Scrape completed: 0 vehicles found, 0 new, 0 sold, 0 reappeared",
            stats=ScrapeRunStats(),
        )


def _sessions():
    return nullcontext(None)


# ---------------------------------------------------------------------------
# Batch runs
# ---------------------------------------------------------------------------


class TestRunDealers:
    def test_runs_every_dealer_in_order(self) -> None:
        dealer_ids = [uuid.uuid4() for _ in range(5)]
        service = RecordingService()

        outcomes = service.run_dealers(dealer_ids, session_factory=_sessions)

        assert [outcome.dealer_id for outcome in outcomes] == dealer_ids
        assert all(outcome.result is not None and outcome.error is None for outcome in outcomes)
        assert sorted(service.calls) == sorted(dealer_ids)

    def test_one_failure_does_not_stop_others(self) -> None:
        ok, failing, storage_failing = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        service = RecordingService(
            failures={
                failing: ScrapeRunError("HTTP 503", stats=ScrapeRunStats(duration_ms=5)),
                storage_failing: StorageWriteError("run log write failed"),
            }
        )

        outcomes = service.run_dealers([ok, failing, storage_failing], max_workers=2, session_factory=_sessions)

        by_id = {outcome.dealer_id: outcome for outcome in outcomes}
        assert by_id[ok].result is not None
        assert by_id[failing].error == "HTTP 503"
        assert by_id[storage_failing].error == "run log write failed"

    def test_deduplicates_ids(self) -> None:
        dealer_id = uuid.uuid4()
        service = RecordingService()

        outcomes = service.run_dealers([dealer_id, dealer_id], session_factory=_sessions)

        assert len(outcomes) == 1
        assert service.calls == [dealer_id]

    def test_empty_batch(self) -> None:
        assert RecordingService().run_dealers([], session_factory=_sessions) == []


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class TestScheduler:
    def test_registers_daily_job(self, monkeypatch) -> None:
        settings = CompetitorInventorySettings(scheduler_hour_utc=5, scheduler_minute_utc=30)
        monkeypatch.setattr(jobs, "get_competitor_inventory_settings", lambda: settings)

        scheduler = jobs.build_scheduler()

        (job,) = scheduler.get_jobs()
        assert job.id == jobs.JOB_ID
        assert "hour='5'" in str(job.trigger)
        assert "minute='30'" in str(job.trigger)

    def test_disabled_scheduler_has_no_jobs(self, monkeypatch) -> None:
        settings = CompetitorInventorySettings(scheduler_enabled=False)
        monkeypatch.setattr(jobs, "get_competitor_inventory_settings", lambda: settings)

        assert jobs.build_scheduler().get_jobs() == []

    def test_job_runs_all_active_dealers(self) -> None:
        class BatchService(RecordingService):
            def run_all_active(self, *, max_workers=None, session_factory=None):
                self.max_workers = max_workers
                return self.run_dealers([uuid.uuid4(), uuid.uuid4()], session_factory=_sessions)

        service = BatchService()

        jobs.run_competitor_inventory_scrape(service)

        assert len(service.calls) == 2
        assert service.max_workers == 3


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in (
            "COMPETITOR_INVENTORY_MISS_THRESHOLD",
            "COMPETITOR_SCRAPE_MAX_PAGES",
            "COMPETITOR_SCHEDULER_ENABLED",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = load_competitor_inventory_settings()

        assert settings.miss_threshold == 2
        assert settings.max_pages == 25
        assert settings.scheduler_enabled is True

    def test_reads_and_clamps_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("COMPETITOR_INVENTORY_MISS_THRESHOLD", "0")
        monkeypatch.setenv("COMPETITOR_SCRAPE_TIMEOUT_SECONDS", "25")
        monkeypatch.setenv("COMPETITOR_SCRAPE_MAX_PAGES", "not-a-number")
        monkeypatch.setenv("COMPETITOR_SCHEDULER_ENABLED", "false")
        monkeypatch.setenv("COMPETITOR_SCHEDULER_HOUR_UTC", "31")

        settings = load_competitor_inventory_settings()

        assert settings.miss_threshold == 1
        assert settings.timeout_seconds == pytest.approx(25.0)
        assert settings.max_pages == 25
        assert settings.scheduler_enabled is False
        assert settings.scheduler_hour_utc == 23
