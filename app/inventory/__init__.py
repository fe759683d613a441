"""
Competitor inventory core: fingerprinting, reconciliation and run orchestration.
"""

from app.inventory.errors import ScrapeRunError
from app.inventory.fingerprint import generate_fingerprint, mileage_bucket
from app.inventory.orchestrator import ScrapeRunOrchestrator
from app.inventory.reconciliation import ReconciliationEngine

__all__ = [
    "ReconciliationEngine",
    "ScrapeRunError",
    "ScrapeRunOrchestrator",
    "generate_fingerprint",
    "mileage_bucket",
]
