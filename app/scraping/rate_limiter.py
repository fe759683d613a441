"""
Per-host request pacing for paginated listing fetches.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from urllib.parse import urlparse


class HostRateLimiter:
    """
    Enforces a minimum interval between consecutive requests to one host.

    Safe to share between threads; a caller waiting on one host never delays
    requests to another.
    """

    def __init__(
        self,
        *,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sleep = sleep
        self._monotonic = monotonic
        self._last_request_by_host: dict[str, float] = {}
        self._lock = threading.Lock()

    def wait(self, *, url: str, min_interval_seconds: float) -> float:
        """
        Block until `url`'s host may be requested again; return seconds slept.
        """

        parsed = urlparse(url)
        host = parsed.netloc.lower() or parsed.path.lower()
        if not host:
            return 0.0

        with self._lock:
            now = self._monotonic()
            last_time = self._last_request_by_host.get(host)
            waited = 0.0
            if last_time is not None:
                waited = max(0.0, last_time + min_interval_seconds - now)
            # Reserve the slot so concurrent callers for this host queue behind it.
            self._last_request_by_host[host] = now + waited

        if waited > 0:
            self._sleep(waited)
        return waited
