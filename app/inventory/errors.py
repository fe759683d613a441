"""
Exceptions raised by the scrape run orchestrator.
"""

from __future__ import annotations

from app.domain.competitor_inventory import ScrapeRunStats


class ScrapeRunError(Exception):
    """
    A dealer scrape run failed after the dealer was loaded.

    The error run log has already been attempted when this is raised; the
    underlying failure is available as `__cause__`.
    """

    def __init__(self, message: str, *, stats: ScrapeRunStats) -> None:
        super().__init__(message)
        self.stats = stats
