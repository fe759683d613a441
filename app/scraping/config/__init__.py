"""
Config helpers for competitor inventory scraping.
"""

from app.scraping.config.loader import (
    get_competitor_inventory_settings,
    load_competitor_inventory_settings,
)
from app.scraping.config.models import DEFAULT_MISS_THRESHOLD, CompetitorInventorySettings

__all__ = [
    "CompetitorInventorySettings",
    "DEFAULT_MISS_THRESHOLD",
    "get_competitor_inventory_settings",
    "load_competitor_inventory_settings",
]
