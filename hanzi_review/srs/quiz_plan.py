"""
Quiz Planning

Chooses which due characters go into a fill-test session. Only due
characters with a fill test attached can be quizzed; the rest are
reported as skipped so the caller can point them at flashcards.

Selection modes:
- "all": every eligible character
- "10", "20", "30" (or any count): the first N in review order
- "manual": only the ids the learner picked, still in review order
"""

from __future__ import annotations
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional, Union

from hanzi_review.srs.due import due_sort_key
from hanzi_review.srs.memory_state import ReviewItem

QUIZ_MODE_ALL = "all"
QUIZ_MODE_MANUAL = "manual"


@dataclass(frozen=True)
class QuizPlan:
    items: list[ReviewItem]
    eligible_count: int
    skipped_due_count: int


def has_fill_test(item: ReviewItem) -> bool:
    return item.fill_test is not None


def plan_fill_test_quiz(
    due_items: Iterable[ReviewItem],
    mode: Union[str, int] = QUIZ_MODE_ALL,
    selected_ids: Optional[Iterable[str]] = None
) -> QuizPlan:
    """
    Build the queue for a fill-test session from the due list.

    Args:
        due_items: Items already known to be due (see get_due_items)
        mode: "all", "manual", or a count (int or numeric string)
        selected_ids: Ids picked by the learner, used in "manual" mode

    Returns:
        QuizPlan with the queued items in review order

    Raises:
        ValueError: for a mode that is neither "all", "manual" nor a count
    """
    due_items = sorted(due_items, key=due_sort_key)
    eligible = [item for item in due_items if has_fill_test(item)]
    skipped_due_count = len(due_items) - len(eligible)

    if mode == QUIZ_MODE_MANUAL:
        chosen = set(selected_ids or ())
        items = [item for item in eligible if item.id in chosen]
    elif mode == QUIZ_MODE_ALL:
        items = eligible
    else:
        try:
            limit = int(mode)
        except (TypeError, ValueError):
            raise ValueError(f"Unknown quiz selection mode: {mode!r}") from None
        items = eligible[:max(0, limit)]

    return QuizPlan(
        items=list(items),
        eligible_count=len(eligible),
        skipped_due_count=skipped_due_count,
    )
