"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.competitor_dealer import CompetitorDealerRecord
from db.models.competitor_price_history import CompetitorPriceHistoryRecord
from db.models.competitor_scrape_log import CompetitorScrapeLogRecord, ScrapeLogStatus
from db.models.competitor_vehicle import CompetitorVehicleRecord, CompetitorVehicleStatus

__all__ = [
    "CompetitorDealerRecord",
    "CompetitorPriceHistoryRecord",
    "CompetitorScrapeLogRecord",
    "CompetitorVehicleRecord",
    "CompetitorVehicleStatus",
    "ScrapeLogStatus",
]
