"""
Constants for familiarity labels and item sorting.
"""

from __future__ import annotations

from typing import Final


# (minimum repetitions, label), checked top to bottom
FAMILIARITY_THRESHOLDS: Final[list[tuple[int, str]]] = [
    (10, "Strong"),
    (5, "Familiar"),
    (2, "Learning"),
    (0, "New"),
]

FAMILIARITY_LABELS: Final[list[str]] = [label for _, label in FAMILIARITY_THRESHOLDS]

SORT_KEYS: Final[list[str]] = [
    "hanzi",
    "created_at",
    "next_review_at",
    "recall_probability",
    "review_count",
    "test_count",
]

ITEM_FRAME_COLUMNS: Final[list[str]] = [
    "id",
    "hanzi",
    "created_at",
    "repetitions",
    "stability_days",
    "interval_days",
    "next_review_at",
    "review_count",
    "test_count",
    "is_due",
    "recall_probability",
    "familiarity",
]
