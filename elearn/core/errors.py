"""Domain error taxonomy.

Services and repositories raise these; routers translate them into HTTP
responses (see elearn.api.errors).  Raw database errors never cross the
service boundary: the PostgreSQL repositories convert IntegrityError into
DuplicateError, and the aggregate maintainer converts failed counter
updates into ConsistencyError.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for every error a service may surface to the web layer."""

    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError, ValueError):
    """Malformed or out-of-range input, or a reference to an unknown parent."""


class NotFoundError(DomainError, LookupError):
    """A by-id lookup found nothing."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class DuplicateError(DomainError):
    """A uniqueness invariant would be violated."""


class CapacityError(DomainError):
    """A bounded resource (live class seats) is full."""


class PermissionDenied(DomainError):
    """The caller is authenticated but may not act on this record."""


class ConsistencyError(DomainError):
    """A derived counter could not be updated alongside its source write.

    The surrounding transaction is rolled back, so the caller can simply
    retry the whole operation.
    """

    retryable = True


class PaymentProviderError(DomainError):
    """The payment provider failed or answered with an error."""
