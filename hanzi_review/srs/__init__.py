"""
SRS - Spaced Repetition for Chinese Characters

Main API for the character review system.

This package implements:
- Exponential forgetting curve: R = exp(-Δt/S)
- Grade-driven stability updates and R_TARGET-based intervals
- A single due rule shared by every due list
- Fill-test grading that feeds the same stability update as flashcards

Quick start:
    from hanzi_review import srs

    # Pure functions (no database)
    item = srs.apply_grade(item, srs.Grade.GOOD, now=now)
    result = srs.grade_fill_test(fill_test, placements)

    # Database-backed workflow
    srs.init_db()
    srs.add_characters("汉字")
    due_items = srs.get_due_items()
    srs.grade_item(due_items[0].id, srs.Grade.EASY)
"""

# Core algorithm (pure)
from hanzi_review.srs.scheduler import apply_grade
from hanzi_review.srs.due import is_due, select_due_items
from hanzi_review.srs.quiz_plan import QuizPlan, plan_fill_test_quiz
from hanzi_review.srs.fill_test import (
    FillResult,
    FillSentence,
    FillTest,
    Placement,
    SentenceResult,
    grade_fill_test,
    tier_from_correct_count,
)
from hanzi_review.srs.memory_state import (
    ReviewItem,
    calculate_retrievability,
    estimate_recall_probability,
    new_review_item,
    now_ms,
)
from hanzi_review.srs.stability import compute_interval_days

# Database API
from hanzi_review.srs.database import (
    ItemNotFoundError,
    init_db,
    reset_db,
    is_test_mode,
    add_characters,
    load_item,
    get_item_by_hanzi,
    save_item,
    list_items,
    delete_item,
    reset_item,
    attach_fill_test,
    detach_fill_test,
    grade_item,
    submit_fill_test,
    get_due_items,
    get_recent_events,
)

# Constants and parameters
from hanzi_review.srs.constants import (
    Grade,
    Tier,
    R_TARGET,
    S_MIN,
    DAY_MS,
    INITIAL_STABILITY_DAYS,
    STABILITY_MULTIPLIER,
    DEFAULT_RECALL_PROBABILITY,
    SOURCE_FLASHCARD,
    SOURCE_FILL_TEST,
)


__all__ = [
    # Core algorithm
    "apply_grade",
    "compute_interval_days",
    "is_due",
    "select_due_items",
    "plan_fill_test_quiz",
    "grade_fill_test",
    "tier_from_correct_count",
    "estimate_recall_probability",
    "calculate_retrievability",

    # State and fill-test types
    "ReviewItem",
    "new_review_item",
    "now_ms",
    "FillTest",
    "FillSentence",
    "Placement",
    "SentenceResult",
    "FillResult",
    "QuizPlan",

    # Database operations
    "ItemNotFoundError",
    "init_db",
    "reset_db",
    "is_test_mode",
    "add_characters",
    "load_item",
    "get_item_by_hanzi",
    "save_item",
    "list_items",
    "delete_item",
    "reset_item",
    "attach_fill_test",
    "detach_fill_test",
    "grade_item",
    "submit_fill_test",
    "get_due_items",
    "get_recent_events",

    # Enums
    "Grade",
    "Tier",

    # Parameters
    "R_TARGET",
    "S_MIN",
    "DAY_MS",
    "INITIAL_STABILITY_DAYS",
    "STABILITY_MULTIPLIER",
    "DEFAULT_RECALL_PROBABILITY",
    "SOURCE_FLASHCARD",
    "SOURCE_FILL_TEST",
]
