"""Rate limiting dependency for spam-prone write endpoints.

A dependency, not middleware, so only the routes that declare it are
limited; each route names its action so reviews and forum posts get
separate windows.  Keys use the verified caller id from require_user.

X-RateLimit-* headers go on every limited response, not only on 429s,
so clients can throttle themselves.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Response, status

from elearn.api.dependencies import CurrentUser
from elearn.core.metrics import RATE_LIMIT_HITS
from elearn.db.redis import redis_pool
from elearn.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimiter,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)

if redis_pool is not None:
    rate_limiter: RateLimiter = RedisRateLimiter(redis_pool)
else:
    rate_limiter = InMemoryRateLimiter()

_DEFAULT_CONFIG = RateLimitConfig()


def require_rate_limit(action: str, config: RateLimitConfig = _DEFAULT_CONFIG):
    """Dependency factory: at most `config.limit` `action`s per user per window.

    Usage: dependencies=[Depends(require_rate_limit("review"))]
    """

    async def _check(principal: CurrentUser, response: Response) -> None:
        key = f"{action}:user:{principal.user_id}"
        result = await rate_limiter.check(key, config)

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)

        if not result.allowed:
            RATE_LIMIT_HITS.labels(action=action).inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded",
                headers={
                    "Retry-After": str(result.retry_after),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return _check
