"""
Unit tests for the in-memory and Redis counter stores
"""
import asyncio
import logging
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from authguard.adapter.services.memory_counter_store import InMemoryCounterStore
from authguard.adapter.services.redis_counter_store import RedisCounterStore
from authguard.app.services.rate_limiter import CounterStoreError


class Clock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


@pytest.mark.asyncio
async def test_memory_store_counts_per_key():
    store = InMemoryCounterStore(clock=Clock())

    assert await store.increment("a", 1000) == 1
    assert await store.increment("a", 1000) == 2
    assert await store.increment("b", 1000) == 1


@pytest.mark.asyncio
async def test_memory_store_restarts_expired_key():
    clock = Clock()
    store = InMemoryCounterStore(clock=clock)

    await store.increment("a", 1000)
    await store.increment("a", 1000)
    clock.now = 1000

    assert await store.increment("a", 1000) == 1


@pytest.mark.asyncio
async def test_memory_store_sweeps_expired_keys(caplog):
    clock = Clock()
    store = InMemoryCounterStore(clock=clock, sweep_threshold=3)

    for key in ("a", "b", "c"):
        await store.increment(key, 10)
    clock.now = 100
    with caplog.at_level(logging.DEBUG):
        await store.increment("d", 10)

    assert "Swept 3 expired counters, 1 left" in caplog.text


@pytest.mark.asyncio
async def test_memory_store_concurrent_increments_are_distinct():
    store = InMemoryCounterStore(clock=Clock())

    counts = await asyncio.gather(*(store.increment("k", 1000) for _ in range(50)))

    assert sorted(counts) == list(range(1, 51))


class FakePipeline:
    def __init__(self, results=None, error=None):
        self.results = results
        self.error = error
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return False

    def incr(self, key):
        self.commands.append(("incr", key))

    def pexpire(self, key, ttl_ms):
        self.commands.append(("pexpire", key, ttl_ms))

    async def execute(self):
        if self.error is not None:
            raise self.error
        return self.results


class FakeRedis:
    def __init__(self, pipeline: FakePipeline):
        self._pipeline = pipeline
        self.transaction = None
        self.aclose = AsyncMock()

    def pipeline(self, transaction=True):
        self.transaction = transaction
        return self._pipeline


@pytest.mark.asyncio
async def test_redis_store_increments_and_sets_expiry_in_one_transaction():
    pipeline = FakePipeline(results=[3, True])
    redis = FakeRedis(pipeline)
    store = RedisCounterStore(redis)

    count = await store.increment("nexus:ratelimit:x:1", 600_000)

    assert count == 3
    assert redis.transaction is True
    assert pipeline.commands == [
        ("incr", "nexus:ratelimit:x:1"),
        ("pexpire", "nexus:ratelimit:x:1", 600_000),
    ]


@pytest.mark.asyncio
async def test_redis_errors_become_counter_store_errors():
    store = RedisCounterStore(FakeRedis(FakePipeline(error=RedisConnectionError("down"))))

    with pytest.raises(CounterStoreError):
        await store.increment("key", 1000)


@pytest.mark.asyncio
async def test_redis_store_close_releases_client():
    redis = FakeRedis(FakePipeline(results=[1, True]))
    store = RedisCounterStore(redis)

    await store.close()

    redis.aclose.assert_awaited_once()
