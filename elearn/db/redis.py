"""Redis connection management.

Mirrors engine.py: with REDIS_URL set, one shared connection pool is
created at import time; without it `redis_pool` is None and rate
limiting falls back to per-process counters.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from elearn.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


async def ping_redis() -> bool:
    """True when the configured Redis answers PING."""
    if redis_pool is None:
        return False
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except aioredis.RedisError:
        logger.warning("Redis ping failed", exc_info=True)
        return False
    return True


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for the Redis pool."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured; rate limits are kept per process")
        yield
        return

    if await ping_redis():
        logger.info("Redis connected")
    else:
        # Keep serving: only rate limiting depends on Redis
        logger.error("Redis unreachable on startup")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
