from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from elearn.api.courses import router as courses_router
from elearn.api.enrollments import router as enrollments_router
from elearn.api.forum import router as forum_router
from elearn.api.health import router as health_router
from elearn.api.live_classes import router as live_classes_router
from elearn.api.metrics_endpoint import router as metrics_router
from elearn.api.notifications import router as notifications_router
from elearn.api.payments import router as payments_router
from elearn.api.users import router as users_router
from elearn.core.config import SETTINGS
from elearn.core.logging import setup_logging
from elearn.db.engine import lifespan_db
from elearn.db.redis import lifespan_redis
from elearn.middleware.metrics import MetricsMiddleware
from elearn.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one fails
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="elearn-api",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route handler,
# so every request has a request ID before metrics are recorded.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(users_router)
app.include_router(courses_router)
app.include_router(enrollments_router)
app.include_router(live_classes_router)
app.include_router(forum_router)
app.include_router(notifications_router)
app.include_router(payments_router)

logger.info(
    "elearn-api started  env=%s log_level=%s port=%d docs=%s payments=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
    "on" if SETTINGS.payments_enabled else "off",
)
