from __future__ import annotations

import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

from elearn.core.errors import ValidationError

_CENTS = Decimal("0.01")


def new_id() -> str:
    """Opaque identifier for a new record (UUIDv4 rendered as text)."""
    return str(uuid4())


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def quantize_2dp(value: Decimal | float | int | str) -> Decimal:
    """Round half-up to two decimal places (currency, rating, percent)."""
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
        if not dec.is_finite():
            raise ValidationError(f"not a finite number: {value!r}")
        return dec.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except ArithmeticError:
        raise ValidationError(f"not a number: {value!r}") from None


def require_text(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} must be non-empty")
    return value.strip()


def require_choice(field: str, value: str, choices: tuple[str, ...]) -> str:
    if value not in choices:
        raise ValidationError(f"{field} must be one of {'|'.join(choices)}")
    return value
