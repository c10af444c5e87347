"""
Metric computations for the character collection.

Recall probabilities come from the estimator and are display-only;
nothing here writes back to review state.
"""

from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from hanzi_review.analytics.constants import (
    FAMILIARITY_LABELS,
    FAMILIARITY_THRESHOLDS,
    ITEM_FRAME_COLUMNS,
    SORT_KEYS,
)
from hanzi_review.analytics.types import CollectionSummary, SessionSummary
from hanzi_review.srs.constants import Grade, REVIEW_SOURCES, SOURCE_FILL_TEST
from hanzi_review.srs.due import is_due
from hanzi_review.srs.memory_state import ReviewItem, estimate_recall_probability, now_ms
from hanzi_review.srs.stability import round_half_up


def familiarity_label(repetitions: Optional[int]) -> str:
    """
    Coarse familiarity bucket from the consecutive-success count.
    """
    repetitions = repetitions or 0
    for minimum, label in FAMILIARITY_THRESHOLDS:
        if repetitions >= minimum:
            return label
    return FAMILIARITY_LABELS[-1]


def format_probability(value: float) -> str:
    return f"{round_half_up(value * 100)}%"


def build_items_frame(items: Iterable[ReviewItem], now: Optional[int] = None) -> pd.DataFrame:
    """
    One row per item with scheduling state and derived display columns.
    """
    if now is None:
        now = now_ms()

    rows = [
        {
            "id": item.id,
            "hanzi": item.hanzi,
            "created_at": item.created_at,
            "repetitions": item.repetitions,
            "stability_days": item.stability_days,
            "interval_days": item.interval_days,
            "next_review_at": item.next_review_at or 0,
            "review_count": item.review_count,
            "test_count": item.test_count,
            "is_due": is_due(item.next_review_at, now),
            "recall_probability": estimate_recall_probability(item, now),
            "familiarity": familiarity_label(item.repetitions),
        }
        for item in items
    ]
    if not rows:
        return pd.DataFrame(columns=ITEM_FRAME_COLUMNS)

    return pd.DataFrame(rows, columns=ITEM_FRAME_COLUMNS)


def summarize_items(items: Iterable[ReviewItem], now: Optional[int] = None) -> CollectionSummary:
    """
    Totals, due count, mean recall probability, familiarity distribution
    and the summed review and test counters.
    """
    df = build_items_frame(items, now)
    if df.empty:
        return CollectionSummary(
            total=0,
            due=0,
            average_recall_probability=0.0,
            familiarity_counts={label: 0 for label in FAMILIARITY_LABELS},
            total_reviewed=0,
            total_tested=0,
        )

    counts = df["familiarity"].value_counts()
    return CollectionSummary(
        total=int(len(df)),
        due=int(df["is_due"].sum()),
        average_recall_probability=float(df["recall_probability"].mean()),
        familiarity_counts={label: int(counts.get(label, 0)) for label in FAMILIARITY_LABELS},
        total_reviewed=int(df["review_count"].sum()),
        total_tested=int(df["test_count"].sum()),
    )


def sort_items(
    items: Iterable[ReviewItem],
    key: str = "next_review_at",
    descending: bool = False,
    now: Optional[int] = None
) -> list[ReviewItem]:
    """
    Sort items by one of SORT_KEYS.

    Equal keys fall back to created_at, oldest first, in both directions.
    "hanzi" compares code points, not a zh-Hans collation, so characters
    come out in Unicode block order rather than pinyin order.

    Raises:
        ValueError: for a key not in SORT_KEYS
    """
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {key!r} (expected one of {SORT_KEYS})")

    items = list(items)
    if not items:
        return []

    df = build_items_frame(items, now)
    df["position"] = range(len(items))
    by = [key] if key == "created_at" else [key, "created_at"]
    ordered = df.sort_values(
        by + ["position"],
        ascending=[not descending] + [True] * len(by),
        kind="mergesort"
    )
    return [items[position] for position in ordered["position"]]


def build_daily_review_counts(events: Iterable[dict]) -> pd.Series:
    """
    Number of review events per UTC day, with zero-filled gaps.

    Args:
        events: Event dicts with an epoch-ms "timestamp" (see get_recent_events)

    Returns:
        int64 Series indexed by UTC day
    """
    timestamps = [event["timestamp"] for event in events]
    if not timestamps:
        return pd.Series(dtype="int64")

    days = pd.to_datetime(pd.Series(timestamps), unit="ms", utc=True).dt.floor("D")
    counts = days.value_counts().sort_index()
    day_index = pd.date_range(start=counts.index.min(), end=counts.index.max(), freq="D")
    return counts.reindex(day_index, fill_value=0).astype("int64")


def summarize_review_events(events: Iterable[dict]) -> dict[str, SessionSummary]:
    """
    Tally grades per review source, e.g. for the events of one session.

    Args:
        events: Event dicts with "source", "grade" and "correct_count"
            (see get_recent_events)

    Returns:
        One SessionSummary per source in REVIEW_SOURCES, present even
        when that source has no events
    """
    grades = [grade.value for grade in Grade]
    df = pd.DataFrame(list(events), columns=["source", "grade", "correct_count"])

    summaries = {}
    for source in REVIEW_SOURCES:
        rows = df[df["source"] == source]
        counts = rows["grade"].value_counts()

        correct = None
        if source == SOURCE_FILL_TEST:
            correct = int(pd.to_numeric(rows["correct_count"]).fillna(0).sum())

        summaries[source] = SessionSummary(
            source=source,
            grade_counts={grade: int(counts.get(grade, 0)) for grade in grades},
            total=int(len(rows)),
            correct=correct,
        )
    return summaries
