from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Keeps consecutive calls at least ``min_interval_seconds`` apart."""

    def __init__(
        self,
        min_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must not be negative")
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._lock = Lock()
        self._last_call: float | None = None

    def acquire(self) -> float:
        """Blocks until the next call is allowed and returns the time waited."""
        with self._lock:
            waited = 0.0
            now = self._clock()
            if self._last_call is not None:
                elapsed = now - self._last_call
                if elapsed < self.min_interval_seconds:
                    waited = self.min_interval_seconds - elapsed
                    logger.debug("Rate limit reached, waiting %.3fs", waited)
                    self._sleep(waited)
                    now = self._clock()
            self._last_call = now
            return waited
