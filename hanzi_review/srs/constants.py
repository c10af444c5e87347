"""
SRS Constants and Parameters

All tunable values for the forgetting-curve scheduler in one place.
The grade multipliers and R_TARGET are empirical and kept exactly as
tuned for behavioral compatibility with existing review data.
"""

from enum import Enum


# ---- Grades ----

class Grade(str, Enum):
    """Recall feedback for a review event (also used as the fill-test tier)."""
    AGAIN = "again"  # Retrieval failed
    HARD = "hard"    # Retrieved with high effort
    GOOD = "good"    # Retrieved normally
    EASY = "easy"    # Retrieved fluently


# Fill tests grade on the same scale as flashcards
Tier = Grade


# ---- Global Constants ----

R_TARGET = 0.90      # Retention expected at the end of an interval
S_MIN = 0.5          # Minimum stability (days)
DAY_MS = 86_400_000  # One day in epoch milliseconds

INITIAL_STABILITY_DAYS = 21.0  # Stability given to new and reset characters


# ---- Stability Multiplier by Grade ----
# Successful recalls lengthen stability, failures shrink it

STABILITY_MULTIPLIER = {
    Grade.AGAIN: 0.60,
    Grade.HARD: 1.05,
    Grade.GOOD: 1.35,
    Grade.EASY: 1.60,
}


# ---- Recall Probability Estimate ----

DEFAULT_RECALL_PROBABILITY = 0.25  # Prior for characters never successfully reviewed
P_MIN = 0.01
P_MAX = 0.99


# ---- Review Sources ----

SOURCE_FLASHCARD = "flashcard"
SOURCE_FILL_TEST = "fill_test"
REVIEW_SOURCES = (SOURCE_FLASHCARD, SOURCE_FILL_TEST)
