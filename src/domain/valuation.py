from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def coalesce_zero(value: Decimal | int | None) -> Decimal:
    """Treat a missing numeric field as zero."""
    if value is None:
        return ZERO
    return Decimal(value)


def round_currency(value: Decimal | int) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return ZERO
    return Decimal(numerator) / Decimal(denominator)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part`` as a percentage of ``whole``, unrounded.

    A zero ``whole`` yields 0 rather than raising.
    """
    return safe_ratio(part, whole) * HUNDRED


def weighted_average(values: Sequence[Decimal], weights: Sequence[Decimal]) -> Decimal:
    if len(values) != len(weights):
        msg = f"values and weights differ in length ({len(values)} != {len(weights)})"
        raise ValueError(msg)

    total_weight = sum(weights, start=ZERO)
    weighted = sum((value * weight for value, weight in zip(values, weights)), start=ZERO)
    return safe_ratio(weighted, total_weight)
