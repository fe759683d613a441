"""
Repository layer exports.
"""

from db.repositories.competitor_inventory_repository import (
    UPDATABLE_VEHICLE_COLUMNS,
    CompetitorInventoryRepository,
)
from db.repositories.errors import (
    DealerNotFoundError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "CompetitorInventoryRepository",
    "UPDATABLE_VEHICLE_COLUMNS",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "DealerNotFoundError",
]
