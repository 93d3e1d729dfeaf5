"""Numeric helpers shared by aggregation and progress reporting."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return math.floor(value + 0.5)


def percent_of(part: float, whole: float) -> int:
    """Integer percentage of part in whole, 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)
