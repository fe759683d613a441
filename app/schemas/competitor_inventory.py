"""
app/schemas/competitor_inventory.py

Response schemas for competitor inventory scrape runs.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.domain.competitor_inventory import ScrapeRunResult


class ScrapeRunStatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vehicles_found: int = Field(..., ge=0, alias="vehiclesFound")
    vehicles_new: int = Field(..., ge=0, alias="vehiclesNew")
    vehicles_sold: int = Field(..., ge=0, alias="vehiclesSold")
    vehicles_reappeared: int = Field(..., ge=0, alias="vehiclesReappeared")
    price_changes: int = Field(..., ge=0, alias="priceChanges")
    duration_ms: int = Field(..., ge=0, alias="durationMs")


class ScrapeRunResponse(BaseModel):
    """
    API response model for one dealer scrape run.
    """

    success: bool
    message: str
    stats: ScrapeRunStatsResponse

    @classmethod
    def from_result(cls, result: ScrapeRunResult) -> "ScrapeRunResponse":
        stats = result.stats
        return cls(
            success=result.success,
            message=result.message,
            stats=ScrapeRunStatsResponse(
                vehicles_found=stats.vehicles_found,
                vehicles_new=stats.vehicles_new,
                vehicles_sold=stats.vehicles_sold,
                vehicles_reappeared=stats.vehicles_reappeared,
                price_changes=stats.price_changes,
                duration_ms=stats.duration_ms,
            ),
        )
