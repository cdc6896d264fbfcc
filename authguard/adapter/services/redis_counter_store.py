"""
Redis counter store for multi-instance deployments.

**Security Note**: use a ``rediss://`` URL with credentials when Redis is not
on a trusted network, and never log the URL itself.
"""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from authguard.app.services.rate_limiter import CounterStore, CounterStoreError

logger = logging.getLogger(__name__)


class RedisCounterStore(CounterStore):
    """
    Counters as Redis integers.

    INCR and PEXPIRE run in one MULTI/EXEC pipeline: INCR is atomic on the
    server, and the expiry evicts a window's key once it can no longer be hit.
    """

    def __init__(self, redis: Redis):
        self.redis = redis

    @classmethod
    def from_url(cls, url: str) -> "RedisCounterStore":
        return cls(Redis.from_url(url, encoding="utf-8", decode_responses=True))

    async def increment(self, key: str, ttl_ms: int) -> int:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.pexpire(key, ttl_ms)
                count, _ = await pipe.execute()
        except RedisError as exc:
            raise CounterStoreError(f"Redis increment failed: {exc.__class__.__name__}") from exc
        return int(count)

    async def close(self) -> None:
        await self.redis.aclose()
        logger.debug("Redis connection closed")
