"""
Structured log lines and timing helpers for dealer scrape runs.

Every event is one compact JSON object: `{"event": ..., **fields}` with keys
sorted. UUIDs, datetimes and Decimals are rendered with `str`.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event}
    payload.update({key: value for key, value in fields.items() if value is not None})
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def elapsed_ms(started: float) -> int:
    """
    Whole milliseconds since a `time.monotonic()` reading.
    """

    return max(0, int((time.monotonic() - started) * 1000))
