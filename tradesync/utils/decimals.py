"""Decimal helpers shared by sizing and the reconcilers."""

from decimal import ROUND_HALF_UP, Decimal

SIZE_QUANTUM = Decimal("0.000001")  # 6 fractional digits


def round_size(value: Decimal) -> Decimal:
    """Round a position size to 6 fractional digits, half-up."""
    return value.quantize(SIZE_QUANTUM, rounding=ROUND_HALF_UP)


def relative_difference(value: Decimal, target: Decimal) -> Decimal:
    """|value - target| as a fraction of target."""
    if target == 0:
        return Decimal("0") if value == 0 else Decimal("Infinity")
    return abs(value - target) / abs(target)


def almost_equal(value: Decimal, target: Decimal, tolerance: Decimal) -> bool:
    """True when value lies within tolerance (a fraction of target) of target.

    The band is closed: a difference of exactly tolerance counts as equal.
    """
    return relative_difference(value, target) <= tolerance
