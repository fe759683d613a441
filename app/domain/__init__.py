"""
app/domain package marker.
"""

from app.domain.competitor_inventory import (
    CompetitorDealer,
    CompetitorVehicle,
    DealerRunOutcome,
    FingerprintKey,
    PriceHistoryEntry,
    ReconciliationResult,
    ScrapedVehicle,
    ScrapeRunLog,
    ScrapeRunResult,
    ScrapeRunStats,
    ScrapeRunStatus,
    VehicleStatus,
    utc_now,
)

__all__ = [
    "CompetitorDealer",
    "CompetitorVehicle",
    "DealerRunOutcome",
    "FingerprintKey",
    "PriceHistoryEntry",
    "ReconciliationResult",
    "ScrapedVehicle",
    "ScrapeRunLog",
    "ScrapeRunResult",
    "ScrapeRunStats",
    "ScrapeRunStatus",
    "VehicleStatus",
    "utc_now",
]
