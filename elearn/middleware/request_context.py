"""Request context: request id, caller, timing.

Every request gets an id (the client's X-Request-ID, or a fresh UUID)
stored in a ContextVar, so every log line emitted while handling it
carries the same `request_id` (elearn.core.logging.RequestContextFilter).
The authenticated caller is recorded the same way by
elearn.api.dependencies.require_user.

ContextVars, not thread-locals: concurrent requests share one event-loop
thread, but each runs in its own task with its own context copy.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from elearn.core.logging import request_id_var

logger = logging.getLogger(__name__)


def route_template(request: Request) -> str | None:
    """The matched route's path template ("/v1/courses/{course_id}")."""
    route = request.scope.get("route")
    return getattr(route, "path", None)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns the request id, times the request, logs one summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        # The caller is only known after the route's dependencies ran,
        # inside the downstream task; request.state is shared with it
        user_id = getattr(request.state, "user_id", "-")
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "route": route_template(request) or "-",
                "user_id": user_id,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
