from __future__ import annotations

import asyncio
from types import SimpleNamespace

from elearn.services import rate_limiter
from elearn.services.rate_limiter import (
    KEY_PREFIX,
    InMemoryRateLimiter,
    RateLimitConfig,
    RedisRateLimiter,
)

CONFIG = RateLimitConfig(limit=3, window_seconds=60)


def test_in_memory_allows_up_to_limit() -> None:
    limiter = InMemoryRateLimiter()

    async def scenario():
        return [await limiter.check("review:user:u1", CONFIG) for _ in range(4)]

    results = asyncio.run(scenario())
    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].retry_after >= 1
    assert results[0].retry_after == 0


def test_in_memory_window_expires(monkeypatch) -> None:
    limiter = InMemoryRateLimiter()
    clock = [1000.0]
    monkeypatch.setattr(rate_limiter, "time", SimpleNamespace(monotonic=lambda: clock[0]))

    async def scenario():
        for _ in range(3):
            await limiter.check("k", CONFIG)
        blocked = await limiter.check("k", CONFIG)
        clock[0] += 61
        fresh = await limiter.check("k", CONFIG)
        return blocked, fresh

    blocked, fresh = asyncio.run(scenario())
    assert not blocked.allowed
    assert fresh.allowed
    assert fresh.remaining == 2


def test_reset_clears_key() -> None:
    limiter = InMemoryRateLimiter()

    async def scenario():
        for _ in range(4):
            await limiter.check("k", CONFIG)
        await limiter.reset("k")
        return await limiter.check("k", CONFIG)

    assert asyncio.run(scenario()).allowed


class _FakePipeline:
    def __init__(self, redis: _FakeRedis) -> None:
        self._redis = redis
        self._ops: list[tuple[str, tuple]] = []

    async def __aenter__(self) -> _FakePipeline:
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    def incr(self, key: str) -> None:
        self._ops.append(("incr", (key,)))

    def expire(self, key: str, seconds: int, nx: bool = False) -> None:
        self._ops.append(("expire", (key, seconds, nx)))

    def ttl(self, key: str) -> None:
        self._ops.append(("ttl", (key,)))

    async def execute(self) -> list:
        out = []
        for op, args in self._ops:
            out.append(getattr(self._redis, f"_{op}")(*args))
        return out


class _FakeRedis:
    """Just enough of redis.asyncio for INCR/EXPIRE NX/TTL pipelines."""

    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self.ttls: dict[str, int] = {}
        self.transaction_flags: list[bool] = []

    def pipeline(self, transaction: bool = True) -> _FakePipeline:
        self.transaction_flags.append(transaction)
        return _FakePipeline(self)

    def _incr(self, key: str) -> int:
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def _expire(self, key: str, seconds: int, nx: bool) -> bool:
        if nx and key in self.ttls:
            return False
        self.ttls[key] = seconds
        return True

    def _ttl(self, key: str) -> int:
        return self.ttls.get(key, -1)

    async def delete(self, key: str) -> None:
        self.counts.pop(key, None)
        self.ttls.pop(key, None)


def test_redis_limiter_counts_in_one_transaction() -> None:
    redis = _FakeRedis()
    limiter = RedisRateLimiter(redis)

    async def scenario():
        return [await limiter.check("reply:user:u1", CONFIG) for _ in range(4)]

    results = asyncio.run(scenario())
    assert [r.allowed for r in results] == [True, True, True, False]
    assert results[-1].retry_after == 60
    assert redis.counts == {f"{KEY_PREFIX}reply:user:u1": 4}
    assert set(redis.transaction_flags) == {True}


def test_redis_limiter_reset() -> None:
    redis = _FakeRedis()
    limiter = RedisRateLimiter(redis)

    async def scenario():
        await limiter.check("k", CONFIG)
        await limiter.reset("k")

    asyncio.run(scenario())
    assert redis.counts == {}
