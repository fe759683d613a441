"""
HTTP fetcher for competitor listing pages.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

import requests

from app.scraping.config.models import CompetitorInventorySettings
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

DEFAULT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,*/*;q=0.8"
)


class FetchError(Exception):
    """
    Raised when a listing page cannot be fetched (transport error or non-2xx).
    """

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


@dataclass(frozen=True)
class FetchedPage:
    url: str
    status_code: int
    text: str


class PageFetcher:
    """
    Fetches raw markup with browser-like headers, bounded retries and backoff.
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        settings: CompetitorInventorySettings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session = session
        self._settings = settings
        self._sleep = sleep
        self.default_headers = {
            "User-Agent": settings.user_agent,
            "Accept": DEFAULT_ACCEPT,
            "Accept-Language": settings.accept_language,
            "Referer": "https://www.google.com/",
        }

    def fetch(self, url: str, headers: Mapping[str, str] | None = None) -> FetchedPage:
        request_headers = {**self.default_headers, **(headers or {})}
        attempts = self._settings.max_retries + 1
        last_error = ""
        last_status: int | None = None

        for attempt in range(attempts):
            try:
                response = self._session.get(
                    url,
                    headers=request_headers,
                    timeout=self._settings.timeout_seconds,
                    allow_redirects=True,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = str(exc) or exc.__class__.__name__
                last_status = None
            except requests.RequestException as exc:
                raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc
            else:
                status_code = response.status_code
                if 200 <= status_code < 300:
                    return FetchedPage(url=url, status_code=status_code, text=response.text)

                last_status = status_code
                last_error = f"HTTP {status_code}"
                if status_code not in RETRYABLE_STATUS_CODES:
                    raise FetchError(
                        f"Failed to fetch {url}: HTTP {status_code}",
                        url=url,
                        status_code=status_code,
                    )

            if attempt + 1 >= attempts:
                break

            backoff_seconds = self._settings.backoff_initial_seconds * (
                self._settings.backoff_multiplier**attempt
            )
            log_event(
                logger,
                logging.WARNING,
                "page_fetch_retry",
                url=url,
                attempt=attempt + 1,
                error=last_error,
                backoff_seconds=backoff_seconds,
            )
            self._sleep(backoff_seconds)

        raise FetchError(
            f"Failed to fetch {url} after {attempts} attempt(s): {last_error}",
            url=url,
            status_code=last_status,
        )
