"""
Due Selection

One predicate decides whether a character is due; every due list in the
package goes through it.

A character is due when it was never scheduled (next_review_at is 0 or
missing) or when its scheduled time has arrived.
"""

from __future__ import annotations
from collections.abc import Iterable
from typing import Optional

from hanzi_review.srs.memory_state import ReviewItem, now_ms


def is_due(next_review_at: Optional[int], now: Optional[int] = None) -> bool:
    if not next_review_at:
        return True

    if now is None:
        now = now_ms()

    return next_review_at <= now


def due_sort_key(item: ReviewItem) -> tuple[int, int]:
    """Earliest scheduled first, unscheduled (0) before everything, ties by creation."""
    return (item.next_review_at or 0, item.created_at)


def select_due_items(items: Iterable[ReviewItem], now: Optional[int] = None) -> list[ReviewItem]:
    """
    Filter items through is_due and order them for review (no DB calls).
    """
    if now is None:
        now = now_ms()

    due_items = [item for item in items if is_due(item.next_review_at, now)]
    due_items.sort(key=due_sort_key)
    return due_items


def merge_due_candidates(
    scheduled: Iterable[ReviewItem],
    unscheduled: Iterable[ReviewItem],
    now: Optional[int] = None
) -> list[ReviewItem]:
    """
    Union the two halves of a due query and deduplicate by id.

    An index range scan on next_review_at covers `next_review_at <= now`
    but whether it also returns the 0/NULL rows depends on the backend,
    so storage queries fetch those separately and merge here.

    Args:
        scheduled: Rows from the range query (may include unscheduled rows)
        unscheduled: Rows whose next_review_at is 0 or NULL

    Returns:
        Due items, each id once, in review order
    """
    merged: dict[str, ReviewItem] = {}
    for item in list(scheduled) + list(unscheduled):
        merged.setdefault(item.id, item)

    return select_due_items(merged.values(), now)
