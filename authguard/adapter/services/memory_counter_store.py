"""
In-process counter store for single-instance deployments and tests.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Tuple

from authguard.app.services.rate_limiter import CounterStore

logger = logging.getLogger(__name__)


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class InMemoryCounterStore(CounterStore):
    """
    Dict-backed counters guarded by one asyncio lock.

    Every increment is a read-modify-write under the lock, so concurrent
    coroutines on the loop see strictly increasing counts. Expired keys are
    dropped when touched, and swept in bulk once the table grows past
    ``sweep_threshold``.
    """

    def __init__(self, clock: Callable[[], int] = _monotonic_ms, sweep_threshold: int = 10_000):
        self._counters: Dict[str, Tuple[int, int]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self._sweep_threshold = sweep_threshold

    async def increment(self, key: str, ttl_ms: int) -> int:
        async with self._lock:
            now = self._clock()
            count, expires_at = self._counters.get(key, (0, 0))
            if expires_at <= now:
                count = 0
            count += 1
            self._counters[key] = (count, now + ttl_ms)

            if len(self._counters) > self._sweep_threshold:
                self._sweep(now)
            return count

    def _sweep(self, now: int) -> None:
        expired = [key for key, (_, expires_at) in self._counters.items() if expires_at <= now]
        for key in expired:
            del self._counters[key]
        logger.debug(f"Swept {len(expired)} expired counters, {len(self._counters)} left")

    async def close(self) -> None:
        self._counters.clear()
