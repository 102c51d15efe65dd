"""Per-user fixed-window rate limiting for write endpoints.

Each (action, user) pair may act `limit` times per `window_seconds`
window; the counter starts with the first request and expires with the
window.  A burst straddling two windows can reach 2 x limit, which is
fine for throttling review/forum spam.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

KEY_PREFIX = "ratelimit:"


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """allowed: the request may proceed.
    remaining: requests left in the current window.
    limit: requests allowed per window.
    retry_after: seconds until the window resets (0 if allowed).
    """

    allowed: bool
    remaining: int
    limit: int
    retry_after: int


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    limit: int = 30
    window_seconds: int = 60


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


def _result(count: int, ttl: int, config: RateLimitConfig) -> RateLimitResult:
    allowed = count <= config.limit
    return RateLimitResult(
        allowed=allowed,
        remaining=max(config.limit - count, 0),
        limit=config.limit,
        retry_after=0 if allowed else max(ttl, 1),
    )


class InMemoryRateLimiter:
    """Single-process windows; each API instance counts on its own."""

    def __init__(self) -> None:
        # key -> (count, window_ends_at)
        self._windows: dict[str, tuple[int, float]] = {}

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = time.monotonic()
        count, ends_at = self._windows.get(key, (0, 0.0))
        if now >= ends_at:
            count, ends_at = 0, now + config.window_seconds
        count += 1
        self._windows[key] = (count, ends_at)
        return _result(count, int(ends_at - now) + 1, config)

    async def reset(self, key: str) -> None:
        self._windows.pop(key, None)


class RedisRateLimiter:
    """Shared windows in Redis: INCR, EXPIRE NX and TTL in one pipeline.

    MULTI/EXEC makes the three commands atomic, so parallel requests from
    every API instance count against the same window.
    """

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        redis_key = f"{KEY_PREFIX}{key}"
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.expire(redis_key, config.window_seconds, nx=True)
            pipe.ttl(redis_key)
            count, _, ttl = await pipe.execute()
        return _result(int(count), int(ttl), config)

    async def reset(self, key: str) -> None:
        await self._redis.delete(f"{KEY_PREFIX}{key}")
