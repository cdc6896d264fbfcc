"""
Fixed-Window Rate Limiter

Counts requests per identity in discrete, non-overlapping windows of
``window_ms``. The counter for a window lives in a shared ``CounterStore``
under ``{key_prefix}:{identity}:{window_index}``; once the clock crosses the
window boundary a new key is used, so counts reset without any cleanup
step and stale keys are evicted lazily by the store.

Atomicity is the store's job: ``increment`` must be a single atomic
read-modify-write so two concurrent requests can never both observe the
pre-increment count.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict

from pydantic import BaseModel, ConfigDict, Field

from authguard.domain.client_identity import fingerprint

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class CounterStoreError(Exception):
    """The backing counter store could not be reached or answered badly"""


class CounterStore(ABC):
    """Shared counter storage with an atomic increment primitive"""

    @abstractmethod
    async def increment(self, key: str, ttl_ms: int) -> int:
        """
        Atomically add one to ``key`` and return the new value.

        A missing key starts at 0. ``ttl_ms`` bounds how long the key may
        outlive its last increment.

        Raises:
            CounterStoreError: when the store is unreachable
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


class RateLimiterConfig(BaseModel):
    """
    Immutable limiter settings, built once at startup.

    ``fail_open`` has no default on purpose: every limiter states what
    happens when its counter store is down.
    """

    model_config = ConfigDict(frozen=True)

    key_prefix: str = Field(..., min_length=1)
    max_requests: int = Field(..., gt=0)
    window_ms: int = Field(..., gt=0)
    fail_open: bool


class RateLimitResult(BaseModel):
    """Outcome of one limiter check"""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    remaining_requests: int
    remaining_ms: int
    limit: int

    @property
    def retry_after_seconds(self) -> int:
        return max(1, math.ceil(self.remaining_ms / 1000))


class RateLimiter:
    """
    Fixed-window limiter over a shared counter store.

    Business Rules:
    - The first call in a window counts 1
    - Calls up to max_requests are allowed, later calls in the same window are not
    - remaining_ms is the time left until the window boundary
    - Store failures follow config.fail_open, and are always logged
    """

    def __init__(
        self,
        config: RateLimiterConfig,
        store: CounterStore,
        clock: Callable[[], int] = wall_clock_ms,
    ):
        self.config = config
        self.store = store
        self.clock = clock

    def window_key(self, identity_key: str, window_index: int) -> str:
        return f"{self.config.key_prefix}:{identity_key}:{window_index}"

    async def check(self, identity_key: str) -> RateLimitResult:
        """
        Count one request for ``identity_key`` and decide whether it may proceed.

        Args:
            identity_key: Caller identity, e.g. "auth-forgot-ip:1.2.3.4"

        Returns:
            RateLimitResult; never raises for store outages
        """
        now_ms = self.clock()
        window_ms = self.config.window_ms
        window_index = now_ms // window_ms
        remaining_ms = (window_index + 1) * window_ms - now_ms

        try:
            count = await self.store.increment(
                self.window_key(identity_key, window_index), ttl_ms=window_ms
            )
        except CounterStoreError as exc:
            return self._store_unavailable(remaining_ms, exc)

        allowed = count <= self.config.max_requests
        if not allowed:
            logger.warning(
                f"Rate limit exceeded for {self.config.key_prefix} "
                f"(client={fingerprint(identity_key)[:16]}, "
                f"count={count}, limit={self.config.max_requests})"
            )

        return RateLimitResult(
            allowed=allowed,
            remaining_requests=max(0, self.config.max_requests - count),
            remaining_ms=remaining_ms,
            limit=self.config.max_requests,
        )

    def _store_unavailable(self, remaining_ms: int, exc: Exception) -> RateLimitResult:
        if self.config.fail_open:
            logger.warning(
                f"Counter store unavailable for {self.config.key_prefix}; failing open: {exc}"
            )
            return RateLimitResult(
                allowed=True,
                remaining_requests=self.config.max_requests,
                remaining_ms=remaining_ms,
                limit=self.config.max_requests,
            )

        logger.warning(
            f"Counter store unavailable for {self.config.key_prefix}; failing closed: {exc}"
        )
        return RateLimitResult(
            allowed=False,
            remaining_requests=0,
            remaining_ms=self.config.window_ms,
            limit=self.config.max_requests,
        )


def build_rate_limit_headers(result: RateLimitResult) -> Dict[str, str]:
    """Standard rate limit response headers for a check result"""
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining_requests),
        "X-RateLimit-Reset": str(result.retry_after_seconds),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers
