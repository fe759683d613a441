"""
Environment loader for competitor inventory settings.
"""

from __future__ import annotations

from functools import lru_cache

from app.scraping.config.models import (
    DEFAULT_ACCEPT_LANGUAGE,
    DEFAULT_MISS_THRESHOLD,
    DEFAULT_USER_AGENT,
    CompetitorInventorySettings,
)
from db.config import get_bool_env, get_float_env, get_int_env, get_str_env, load_env_files


def _clamp(value: int, *, low: int, high: int) -> int:
    return min(high, max(low, value))


def load_competitor_inventory_settings() -> CompetitorInventorySettings:
    """
    Build settings from the current environment without caching.

    Out-of-range values are clamped; malformed ones fall back to defaults.
    """

    load_env_files()
    return CompetitorInventorySettings(
        miss_threshold=max(
            1,
            get_int_env("COMPETITOR_INVENTORY_MISS_THRESHOLD", DEFAULT_MISS_THRESHOLD),
        ),
        timeout_seconds=max(1.0, get_float_env("COMPETITOR_SCRAPE_TIMEOUT_SECONDS", 20.0)),
        max_retries=max(0, get_int_env("COMPETITOR_SCRAPE_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(
            0.0,
            get_float_env("COMPETITOR_SCRAPE_BACKOFF_INITIAL_SECONDS", 1.0),
        ),
        backoff_multiplier=max(1.0, get_float_env("COMPETITOR_SCRAPE_BACKOFF_MULTIPLIER", 2.0)),
        user_agent=get_str_env("COMPETITOR_SCRAPE_USER_AGENT", DEFAULT_USER_AGENT),
        accept_language=get_str_env("COMPETITOR_SCRAPE_ACCEPT_LANGUAGE", DEFAULT_ACCEPT_LANGUAGE),
        max_pages=max(1, get_int_env("COMPETITOR_SCRAPE_MAX_PAGES", 25)),
        page_delay_seconds=max(0.0, get_float_env("COMPETITOR_SCRAPE_PAGE_DELAY_SECONDS", 0.75)),
        scheduler_enabled=get_bool_env("COMPETITOR_SCHEDULER_ENABLED", True),
        scheduler_hour_utc=_clamp(get_int_env("COMPETITOR_SCHEDULER_HOUR_UTC", 4), low=0, high=23),
        scheduler_minute_utc=_clamp(
            get_int_env("COMPETITOR_SCHEDULER_MINUTE_UTC", 0),
            low=0,
            high=59,
        ),
        scheduler_max_workers=max(1, get_int_env("COMPETITOR_SCHEDULER_MAX_WORKERS", 4)),
    )


@lru_cache(maxsize=1)
def get_competitor_inventory_settings() -> CompetitorInventorySettings:
    """
    Return cached competitor inventory settings.
    """

    return load_competitor_inventory_settings()
