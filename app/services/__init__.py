"""
app/services package marker.
"""

from app.services.competitor_inventory_service import (
    CompetitorInventoryService,
    get_competitor_inventory_service,
)

__all__ = ["CompetitorInventoryService", "get_competitor_inventory_service"]
