"""
Scheduler - Review Grading Logic

Pure scheduling and state updates (no database calls).

Main workflow:
1. Load review item (caller's responsibility)
2. Apply the grade to stability and repetitions
3. Derive the interval and next review time
4. Return a new item; persisting it is the database module's job

Fill tests reuse this path: their tier is passed in as the grade.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional, Union

from hanzi_review.srs import stability
from hanzi_review.srs.constants import DAY_MS, Grade
from hanzi_review.srs.memory_state import ReviewItem, estimate_recall_probability, now_ms


def apply_grade(
    item: ReviewItem,
    grade: Union[Grade, str],
    now: Optional[int] = None
) -> ReviewItem:
    """
    Apply one grading event and return the updated item.

    The input item is not modified.

    Args:
        item: Current review item
        grade: AGAIN, HARD, GOOD or EASY (plain strings are coerced)
        now: Grading time in epoch ms (defaults to now)

    Returns:
        New ReviewItem with stability_days, repetitions, interval_days and
        next_review_at updated; every other field passes through

    Raises:
        ValueError: if grade is not a valid Grade
    """
    grade = Grade(grade)
    if now is None:
        now = now_ms()

    new_stability = stability.update_stability(item.stability_days, grade)

    if grade == Grade.AGAIN:
        new_repetitions = 0
    else:
        new_repetitions = (item.repetitions or 0) + 1

    interval_days = stability.compute_interval_days(new_stability)

    return replace(
        item,
        stability_days=new_stability,
        repetitions=new_repetitions,
        interval_days=interval_days,
        next_review_at=now + interval_days * DAY_MS,
    )


def build_review_event(
    before: ReviewItem,
    after: ReviewItem,
    grade: Grade,
    source: str,
    timestamp: int,
    correct_count: Optional[int] = None
) -> dict:
    """
    Build the event log entry for a grading event.

    Returns:
        Dict ready to pass to the ReviewEvent model
    """
    return {
        'item_id': after.id,
        'hanzi': after.hanzi,
        'timestamp': timestamp,
        'grade': Grade(grade).value,
        'source': source,
        'correct_count': correct_count,
        'recall_probability_before': estimate_recall_probability(before, timestamp),
        'stability_before': before.stability_days,
        'interval_before': before.interval_days,
        'repetitions_before': before.repetitions,
        'stability_after': after.stability_days,
        'interval_after': after.interval_days,
        'repetitions_after': after.repetitions,
    }
