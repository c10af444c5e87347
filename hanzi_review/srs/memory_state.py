"""
Memory State - Review Item State and Recall Probability

Defines the per-character scheduling state and the read-only recall
probability estimate used for sorting and display.

Key concepts:
- Stability (S): forgetting-curve time constant, in days
- Interval: days until the next scheduled review
- Recall probability: p = exp(-elapsed / S), never persisted
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import math
import uuid

from hanzi_review.srs.constants import (
    DAY_MS,
    DEFAULT_RECALL_PROBABILITY,
    INITIAL_STABILITY_DAYS,
    P_MAX,
    P_MIN,
    S_MIN,
)
from hanzi_review.srs.fill_test import FillTest


@dataclass
class ReviewItem:
    """
    Scheduling state for a single character.

    stability_days holds what older data stored as "ease"; the value has
    always been the forgetting-curve stability, only the name was legacy.
    """
    id: str
    hanzi: str
    created_at: int  # epoch ms

    repetitions: int = 0  # Consecutive non-"again" reviews
    stability_days: float = INITIAL_STABILITY_DAYS
    interval_days: int = 0
    next_review_at: Optional[int] = 0  # epoch ms, 0/None = due now

    # Observability counters, not used by scheduling
    review_count: int = 0
    test_count: int = 0

    pinyin: Optional[str] = None
    meaning: Optional[str] = None
    fill_test: Optional[FillTest] = None


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def new_review_item(
    hanzi: str,
    created_at: Optional[int] = None,
    item_id: Optional[str] = None,
    pinyin: Optional[str] = None,
    meaning: Optional[str] = None
) -> ReviewItem:
    """
    Initialize state for a character that has never been reviewed.

    New items are immediately due (next_review_at=0).
    """
    if created_at is None:
        created_at = now_ms()

    return ReviewItem(
        id=item_id or uuid.uuid4().hex,
        hanzi=hanzi,
        created_at=created_at,
        repetitions=0,
        stability_days=INITIAL_STABILITY_DAYS,
        interval_days=0,
        next_review_at=0,
        review_count=0,
        test_count=0,
        pinyin=pinyin,
        meaning=meaning,
    )


def calculate_retrievability(stability_days: float, elapsed_days: float) -> float:
    """
    Exponential forgetting curve.

    Formula: R = exp(-Δt / S)

    Args:
        stability_days: Stability in days (floored at S_MIN)
        elapsed_days: Days since the last review (negative treated as 0)

    Returns:
        Retrievability between 0 and 1
    """
    stability_days = max(S_MIN, stability_days)
    elapsed_days = max(0.0, elapsed_days)
    return math.exp(-elapsed_days / stability_days)


def estimate_recall_probability(item: ReviewItem, now: Optional[int] = None) -> float:
    """
    Estimate the probability that a character is still remembered.

    The last review time is reconstructed as next_review_at - interval,
    which holds because grading always schedules from the grading instant.
    A grade applied with a backdated `now` skews this estimate.

    Args:
        item: Review item
        now: Current time in epoch ms (defaults to wall clock)

    Returns:
        Probability clamped to [P_MIN, P_MAX]; DEFAULT_RECALL_PROBABILITY
        for characters never successfully reviewed
    """
    if not item.repetitions or not item.next_review_at:
        return DEFAULT_RECALL_PROBABILITY

    if now is None:
        now = now_ms()

    stability_days = max(S_MIN, item.stability_days or S_MIN)
    interval_days = max(1, item.interval_days or 1)
    last_review_at = item.next_review_at - interval_days * DAY_MS
    elapsed_days = max(0.0, (now - last_review_at) / DAY_MS)

    probability = calculate_retrievability(stability_days, elapsed_days)
    return min(P_MAX, max(P_MIN, probability))
