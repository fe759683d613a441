"""
app/scheduler/jobs.py

APScheduler-based scheduler for periodic competitor inventory scrapes.

Dealer discovery
----------------
Dealers are resolved at job runtime from the ``competitor_dealers`` table:
every row with ``is_active = true`` is scraped. Nothing is hardcoded.

Schedule (all times UTC)
------------------------
  daily_competitor_inventory — COMPETITOR_SCHEDULER_HOUR_UTC:COMPETITOR_SCHEDULER_MINUTE_UTC
                               (default 04:00) every day

Each dealer runs in its own worker thread with its own DB session; one
dealer failing never stops the others.

Lifecycle
---------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.scraping.config import get_competitor_inventory_settings
from app.services.competitor_inventory_service import (
    CompetitorInventoryService,
    get_competitor_inventory_service,
)

logger = logging.getLogger(__name__)

JOB_ID = "daily_competitor_inventory"


def run_competitor_inventory_scrape(service: CompetitorInventoryService | None = None) -> None:
    """
    Scrape every active competitor dealer once.
    """
    service = service or get_competitor_inventory_service()
    logger.info("Scheduler: %s starting", JOB_ID)

    outcomes = service.run_all_active(max_workers=service.settings.scheduler_max_workers)
    if not outcomes:
        logger.warning("Scheduler: %s no active dealers found, skipping", JOB_ID)
        return

    failed = [outcome for outcome in outcomes if outcome.error is not None]
    for outcome in failed:
        logger.warning(
            "Scheduler: %s failed dealer_id=%s: %s",
            JOB_ID,
            outcome.dealer_id,
            outcome.error,
        )
    logger.info(
        "Scheduler: %s complete dealers=%d failed=%d",
        JOB_ID,
        len(outcomes),
        len(failed),
    )


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points. When COMPETITOR_SCHEDULER_ENABLED is false
    the scheduler carries no jobs.
    """
    settings = get_competitor_inventory_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    if not settings.scheduler_enabled:
        logger.info("Scheduler: %s disabled by configuration", JOB_ID)
        return scheduler

    scheduler.add_job(
        run_competitor_inventory_scrape,
        trigger="cron",
        hour=settings.scheduler_hour_utc,
        minute=settings.scheduler_minute_utc,
        id=JOB_ID,
        name="Daily competitor inventory scrape",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
        max_instances=1,
    )

    return scheduler
