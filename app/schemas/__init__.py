"""
app/schemas package marker.
"""

from app.schemas.competitor_inventory import ScrapeRunResponse, ScrapeRunStatsResponse

__all__ = ["ScrapeRunResponse", "ScrapeRunStatsResponse"]
