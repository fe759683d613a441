"""
Competitor inventory configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/121.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "nl-NL,nl;q=0.9,en-US;q=0.8,en;q=0.7"
DEFAULT_MISS_THRESHOLD = 2


@dataclass(frozen=True)
class CompetitorInventorySettings:
    """
    Runtime settings for dealer scrape runs and reconciliation.
    """

    miss_threshold: int = DEFAULT_MISS_THRESHOLD
    timeout_seconds: float = 20.0
    max_retries: int = 2
    backoff_initial_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    max_pages: int = 25
    page_delay_seconds: float = 0.75
    scheduler_enabled: bool = True
    scheduler_hour_utc: int = 4
    scheduler_minute_utc: int = 0
    scheduler_max_workers: int = 4
