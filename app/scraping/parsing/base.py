"""
Listing parser abstraction consumed by the scrape run orchestrator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from app.domain.competitor_inventory import ScrapedVehicle

PAGE_QUERY_PARAMS = ("page", "pagina", "p")


def build_page_url(base_url: str, page: int) -> str:
    """
    URL of listing page `page` (1-based), reusing an existing page parameter.
    """

    if page <= 1:
        return base_url

    parsed = urlparse(base_url)
    query = parse_qsl(parsed.query, keep_blank_values=True)
    present = {key for key, _ in query}
    param = next((name for name in PAGE_QUERY_PARAMS if name in present), "page")

    updated = [(key, value) for key, value in query if key != param]
    updated.append((param, str(page)))
    return urlunparse(parsed._replace(query=urlencode(updated)))


class ListingParser(ABC):
    """
    Turns raw listing markup into scraped vehicles.

    Implementations must be best-effort: malformed markup yields fewer
    vehicles or fewer fields, never an exception.
    """

    @abstractmethod
    def parse(self, markup: str, base_url: str) -> list[ScrapedVehicle]:
        """
        Extract every listing found in `markup`; relative URLs resolve against `base_url`.
        """

    def has_next_page(self, markup: str, current_page: int) -> bool:
        return False

    def build_page_url(self, base_url: str, page: int) -> str:
        return build_page_url(base_url, page)
