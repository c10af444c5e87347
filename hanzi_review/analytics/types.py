"""
Types for collection analytics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CollectionSummary:
    """
    Headline numbers for the whole character collection.
    """
    total: int
    due: int
    average_recall_probability: float
    familiarity_counts: dict[str, int]
    total_reviewed: int = 0
    total_tested: int = 0


@dataclass(frozen=True)
class SessionSummary:
    """
    Grade tallies for one review source.

    correct is the summed fill-test score; None for flashcards.
    """
    source: str
    grade_counts: dict[str, int]
    total: int
    correct: Optional[int] = None
