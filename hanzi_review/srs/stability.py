"""
Stability Updates

Implements the per-grade stability update and the interval derived from it.

Each grading event multiplies stability by a grade-specific factor:
- again: shrink (and reset repetitions, handled by the scheduler)
- hard/good/easy: grow, more for better recall

The interval is the time at which recall is expected to fall to R_TARGET:
    interval = -S * ln(R_TARGET)
"""

from __future__ import annotations
import math

from hanzi_review.srs.constants import (
    Grade,
    R_TARGET,
    S_MIN,
    STABILITY_MULTIPLIER,
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (not banker's rounding)."""
    return math.floor(value + 0.5)


def floor_stability(stability_days) -> float:
    """
    Read a stored stability value, treating missing/non-positive as 0.

    Returns:
        Stability floored at S_MIN
    """
    if not stability_days or stability_days < 0:
        stability_days = 0.0
    return max(S_MIN, float(stability_days))


def update_stability(stability_days: float, grade: Grade) -> float:
    """
    Apply the grade multiplier to the current stability.

    Formula:
        S_new = max(S_min, max(S_min, S) * multiplier(grade))

    Args:
        stability_days: Current stability
        grade: Review grade

    Returns:
        New stability value
    """
    current = floor_stability(stability_days)
    return max(S_MIN, current * STABILITY_MULTIPLIER[grade])


def compute_interval_days(stability_days: float, r_target: float = R_TARGET) -> int:
    """
    Days until recall is expected to drop to r_target.

    Formula:
        interval = max(1, round(-S * ln(r_target)))

    Monotonic in S for a fixed r_target.

    Args:
        stability_days: Stability in days
        r_target: Target retention (0 < r_target < 1)

    Returns:
        Interval in whole days, at least 1
    """
    interval_days = -stability_days * math.log(r_target)
    return max(1, round_half_up(interval_days))
