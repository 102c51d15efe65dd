"""Domain error -> HTTP response translation.

Routers wrap service calls in `with domain_errors():` so every endpoint
maps the taxonomy in elearn.core.errors the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException, status

from elearn.core.errors import (
    CapacityError,
    ConsistencyError,
    DomainError,
    DuplicateError,
    NotFoundError,
    PaymentProviderError,
    PermissionDenied,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying after a ConsistencyError
RETRY_AFTER_SECONDS = 1

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateError, status.HTTP_409_CONFLICT),
    (CapacityError, status.HTTP_409_CONFLICT),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (ConsistencyError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PaymentProviderError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(exc: DomainError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


@contextmanager
def domain_errors() -> Iterator[None]:
    try:
        yield
    except DomainError as exc:
        code = status_for(exc)
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None
        if code >= 500:
            logger.error("Request failed status=%d: %s", code, exc.message)
        raise HTTPException(status_code=code, detail=exc.message, headers=headers) from None
