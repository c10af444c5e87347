"""
Analytics package exports.
"""

from hanzi_review.analytics.constants import FAMILIARITY_LABELS, SORT_KEYS
from hanzi_review.analytics.metrics import (
    build_daily_review_counts,
    build_items_frame,
    familiarity_label,
    format_probability,
    sort_items,
    summarize_items,
    summarize_review_events,
)
from hanzi_review.analytics.types import CollectionSummary, SessionSummary

__all__ = [
    "FAMILIARITY_LABELS",
    "SORT_KEYS",
    "build_daily_review_counts",
    "build_items_frame",
    "familiarity_label",
    "format_probability",
    "sort_items",
    "summarize_items",
    "summarize_review_events",
    "CollectionSummary",
    "SessionSummary",
]
