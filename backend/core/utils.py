from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")
ZERO = Decimal("0")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def d_or_none(val) -> Optional[Decimal]:
    """Like d() but keeps "not set" distinct from zero."""
    if val is None or val == "":
        return None
    return d(val)


def q2(amount) -> Decimal:
    """Round a monetary amount to cents, half away from zero."""
    return d(amount).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def q4(amount) -> Decimal:
    """Round a weight to four decimal places, half away from zero."""
    return d(amount).quantize(FOURPLACES, rounding=ROUND_HALF_UP)
