"""Money / rounding helpers.

Amounts are stored as integer minor units (cents, paise). Centralized so the
validator and the summary aggregation use identical rounding semantics:
decimal arithmetic on the string form of the value, half away from zero.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP

MINOR_UNITS_PER_MAJOR = 100


def to_minor_units(value: float | int | str | Decimal) -> int:
    """Convert a major-unit amount to integer minor units, e.g. 19.99 -> 1999."""
    scaled = Decimal(str(value)) * MINOR_UNITS_PER_MAJOR
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> float:
    """``part`` as a percentage of ``whole`` rounded to 2 decimal places.

    Each share is rounded on its own, so a set of shares may not add up to
    exactly 100.
    """
    if whole == 0:
        raise ZeroDivisionError("percentage of a zero total")
    share = Decimal(part) * 100 / Decimal(whole)
    return float(share.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
