"""
Run competitor inventory scrapes from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import uuid

from app.domain.competitor_inventory import DealerRunOutcome, ScrapeRunResult
from app.schemas.competitor_inventory import ScrapeRunResponse
from app.services.competitor_inventory_service import CompetitorInventoryService


def _result_payload(result: ScrapeRunResult) -> dict[str, object]:
    return ScrapeRunResponse.from_result(result).model_dump(by_alias=True, mode="json")


def _outcome_payload(outcome: DealerRunOutcome) -> dict[str, object]:
    payload: dict[str, object] = {"dealer_id": str(outcome.dealer_id)}
    if outcome.result is not None:
        payload.update(_result_payload(outcome.result))
    else:
        payload.update({"success": False, "message": outcome.error})
    return payload


def main() -> int:
    parser = argparse.ArgumentParser(description="Run competitor inventory scrapes.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--dealer-id",
        dest="dealer_ids",
        action="append",
        type=uuid.UUID,
        help="Competitor dealer id; repeat for several dealers.",
    )
    target.add_argument(
        "--all-active",
        action="store_true",
        help="Scrape every active competitor dealer.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parallel dealers (defaults to COMPETITOR_SCHEDULER_MAX_WORKERS).",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    service = CompetitorInventoryService()
    if args.all_active:
        outcomes = service.run_all_active(max_workers=args.workers)
    else:
        outcomes = service.run_dealers(args.dealer_ids, max_workers=args.workers)

    print(json.dumps([_outcome_payload(outcome) for outcome in outcomes], indent=2))
    return 0 if all(outcome.error is None for outcome in outcomes) else 1


if __name__ == "__main__":
    raise SystemExit(main())
