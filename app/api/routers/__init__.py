"""
app/api/routers package marker.
"""

from app.api.routers.competitor_inventory import router as competitor_inventory_router

__all__ = ["competitor_inventory_router"]
