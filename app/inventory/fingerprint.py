"""
Deterministic identity keys for scraped listings.

Listings carry no stable external id, so a vehicle is recognised across
scrape runs by `BRAND|MODEL|YEAR|MILEAGE_BUCKET|COLOR`. Mileage is bucketed
so a car that gains a few hundred km between runs keeps its key.
"""

from __future__ import annotations

from app.domain.competitor_inventory import FingerprintKey, ScrapedVehicle

MILEAGE_BUCKET_SIZE_KM = 2000
UNKNOWN_COLOR = "ONBEKEND"
FINGERPRINT_SEPARATOR = "|"


def mileage_bucket(mileage: int | None) -> int:
    """
    Bucket index of a mileage; absent or negative mileage falls in bucket 0.
    """

    if mileage is None:
        return 0
    return max(0, int(mileage)) // MILEAGE_BUCKET_SIZE_KM


def generate_fingerprint(vehicle: ScrapedVehicle) -> FingerprintKey:
    brand = (vehicle.brand or "").strip().upper()
    model = (vehicle.model or "").strip().upper()
    year = vehicle.build_year or 0
    color = (vehicle.color or "").strip().upper() or UNKNOWN_COLOR

    return FINGERPRINT_SEPARATOR.join(
        [brand, model, str(year), str(mileage_bucket(vehicle.mileage)), color]
    )
