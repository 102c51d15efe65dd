"""Health and readiness endpoints.

  /health (liveness): the process answers; dependency status is reported
    in the body but never turns the response into an error, so a database
    blip does not get the container restarted.

  /ready (readiness): 503 while a configured dependency (PostgreSQL,
    Redis) is unreachable, so the load balancer stops routing here until
    it recovers.  Unconfigured dependencies do not count: the in-memory
    fallbacks take over.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from elearn.db import engine as db_engine
from elearn.db import redis as db_redis

router = APIRouter(tags=["health"])


async def _dependency_checks() -> dict[str, str]:
    checks: dict[str, str] = {}
    if db_engine.engine is None:
        checks["database"] = "not_configured"
    else:
        checks["database"] = "ok" if await db_engine.ping_database() else "down"

    if db_redis.redis_pool is None:
        checks["redis"] = "not_configured"
    else:
        checks["redis"] = "ok" if await db_redis.ping_redis() else "down"
    return checks


@router.get("/health")
async def health() -> dict:
    """Liveness probe plus dependency status; always 200."""
    checks = await _dependency_checks()
    overall = "degraded" if "down" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    checks = await _dependency_checks()
    if "down" in checks.values():
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
