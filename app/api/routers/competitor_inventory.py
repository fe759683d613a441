"""
app/api/routers/competitor_inventory.py

Competitor dealer scrape endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.inventory.errors import ScrapeRunError
from app.schemas.competitor_inventory import ScrapeRunResponse
from app.scraping.fetcher import FetchError
from app.services.competitor_inventory_service import (
    CompetitorInventoryService,
    get_competitor_inventory_service,
)
from db.repositories.errors import DealerNotFoundError, StorageError
from db.session import get_db

router = APIRouter(tags=["competitor-inventory"])


def _error(status_code: int, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"success": False, "message": message},
    )


@router.post("/competitor-dealers/{dealer_id}/scrape", response_model=ScrapeRunResponse)
def scrape_competitor_dealer(
    dealer_id: uuid.UUID,
    db: Session = Depends(get_db),
    inventory_service: CompetitorInventoryService = Depends(get_competitor_inventory_service),
) -> ScrapeRunResponse:
    """
    Scrape one competitor dealer and reconcile its stored inventory.
    """

    try:
        result = inventory_service.run_scrape(db=db, dealer_id=dealer_id)
    except DealerNotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, str(exc)) from exc
    except ScrapeRunError as exc:
        if isinstance(exc.__cause__, FetchError):
            raise _error(status.HTTP_502_BAD_GATEWAY, f"Scrape failed: {exc}") from exc
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Scrape failed: {exc}") from exc
    except StorageError as exc:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Storage failure: {exc}") from exc

    return ScrapeRunResponse.from_result(result)
