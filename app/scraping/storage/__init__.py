"""
Storage layer exports.
"""

from app.scraping.storage.base import VehicleRepository
from app.scraping.storage.sqlalchemy_storage import SQLAlchemyVehicleRepository

__all__ = ["SQLAlchemyVehicleRepository", "VehicleRepository"]
