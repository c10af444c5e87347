import pandas as pd
import pytest

from hanzi_review.analytics import (
    FAMILIARITY_LABELS,
    build_daily_review_counts,
    build_items_frame,
    familiarity_label,
    format_probability,
    sort_items,
    summarize_items,
    summarize_review_events,
)
from hanzi_review.srs.constants import DAY_MS, Grade
from hanzi_review.srs.scheduler import apply_grade


@pytest.mark.parametrize("repetitions, label", [
    (None, "New"),
    (0, "New"),
    (1, "New"),
    (2, "Learning"),
    (4, "Learning"),
    (5, "Familiar"),
    (9, "Familiar"),
    (10, "Strong"),
    (42, "Strong"),
])
def test_familiarity_label(repetitions, label):
    assert familiarity_label(repetitions) == label


def test_format_probability():
    assert format_probability(0.25) == "25%"
    assert format_probability(0.125) == "13%"
    assert format_probability(0.999) == "100%"
    assert format_probability(0.01) == "1%"


@pytest.fixture
def collection(make_item, now):
    new = make_item(id="new", hanzi="新", repetitions=0, next_review_at=0, created_at=3)
    graded = apply_grade(
        make_item(id="graded", hanzi="学", repetitions=0, next_review_at=0, created_at=1),
        Grade.GOOD,
        now - DAY_MS,
    )
    strong = make_item(
        id="strong", hanzi="好", repetitions=12, stability_days=100,
        interval_days=11, next_review_at=now - DAY_MS, created_at=2, review_count=12,
    )
    return [new, graded, strong]


def test_build_items_frame(collection, now):
    df = build_items_frame(collection, now)

    assert list(df["id"]) == ["new", "graded", "strong"]
    assert list(df["is_due"]) == [True, False, True]
    assert list(df["familiarity"]) == ["New", "New", "Strong"]
    assert df.loc[0, "recall_probability"] == 0.25


def test_build_items_frame_empty():
    df = build_items_frame([], 0)

    assert df.empty
    assert "recall_probability" in df.columns


def test_summarize_items(collection, now):
    summary = summarize_items(collection, now)

    assert summary.total == 3
    assert summary.due == 2
    assert 0.25 < summary.average_recall_probability < 0.99
    assert summary.familiarity_counts == {"Strong": 1, "Familiar": 0, "Learning": 0, "New": 2}
    assert summary.total_reviewed == 12
    assert summary.total_tested == 0


def test_summarize_empty_collection(now):
    summary = summarize_items([], now)

    assert summary.total == 0
    assert summary.due == 0
    assert summary.average_recall_probability == 0.0
    assert set(summary.familiarity_counts) == set(FAMILIARITY_LABELS)
    assert summary.total_reviewed == 0
    assert summary.total_tested == 0


def test_sort_items_by_key(collection, now):
    by_created = sort_items(collection, "created_at", now=now)
    by_hanzi_desc = sort_items(collection, "hanzi", descending=True, now=now)
    by_recall = sort_items(collection, "recall_probability", now=now)

    assert [item.id for item in by_created] == ["graded", "strong", "new"]
    assert [item.hanzi for item in by_hanzi_desc] == sorted(["新", "学", "好"], reverse=True)
    assert by_recall[0].id == "new"


def test_sort_items_breaks_ties_oldest_first(make_item, now):
    items = [
        make_item(id="newer", created_at=20, review_count=1),
        make_item(id="older", created_at=10, review_count=1),
        make_item(id="busy", created_at=30, review_count=5),
    ]

    ascending = sort_items(items, "review_count", now=now)
    descending = sort_items(items, "review_count", descending=True, now=now)

    assert [item.id for item in ascending] == ["older", "newer", "busy"]
    assert [item.id for item in descending] == ["busy", "older", "newer"]


def test_sort_items_ties_on_created_at_keep_input_order(make_item, now):
    items = [make_item(id=str(i), created_at=5) for i in range(4)]

    assert [item.id for item in sort_items(items, "created_at", descending=True, now=now)] == ["0", "1", "2", "3"]


def test_sort_items_rejects_unknown_key(collection, now):
    with pytest.raises(ValueError):
        sort_items(collection, "difficulty", now=now)


def test_sort_items_empty(now):
    assert sort_items([], "hanzi", now=now) == []


def test_build_daily_review_counts_fills_gaps(now):
    events = [
        {"timestamp": now},
        {"timestamp": now + 60_000},
        {"timestamp": now + 3 * DAY_MS},
    ]

    counts = build_daily_review_counts(events)

    assert list(counts) == [2, 0, 0, 1]
    assert counts.dtype == "int64"
    assert counts.index[0] == pd.Timestamp(now, unit="ms", tz="UTC").floor("D")


def test_build_daily_review_counts_empty():
    counts = build_daily_review_counts([])

    assert counts.empty


def test_summarize_items_adds_up_counters(make_item, now):
    items = [
        make_item(id="a", review_count=4, test_count=1),
        make_item(id="b", review_count=2, test_count=3),
    ]

    summary = summarize_items(items, now)

    assert summary.total_reviewed == 6
    assert summary.total_tested == 4


def test_summarize_review_events_by_source():
    events = [
        {"source": "flashcard", "grade": "good", "correct_count": None},
        {"source": "flashcard", "grade": "good", "correct_count": None},
        {"source": "flashcard", "grade": "again", "correct_count": None},
        {"source": "fill_test", "grade": "easy", "correct_count": 3},
        {"source": "fill_test", "grade": "hard", "correct_count": 1},
    ]

    summaries = summarize_review_events(events)

    flashcard = summaries["flashcard"]
    assert flashcard.grade_counts == {"again": 1, "hard": 0, "good": 2, "easy": 0}
    assert flashcard.total == 3
    assert flashcard.correct is None

    fill_test = summaries["fill_test"]
    assert fill_test.grade_counts == {"again": 0, "hard": 1, "good": 0, "easy": 1}
    assert fill_test.total == 2
    assert fill_test.correct == 4


def test_summarize_review_events_empty():
    summaries = summarize_review_events([])

    assert set(summaries) == {"flashcard", "fill_test"}
    assert summaries["fill_test"].correct == 0
    assert summaries["flashcard"].grade_counts == {"again": 0, "hard": 0, "good": 0, "easy": 0}


def test_summarize_recorded_session(review_db, sample_fill_test, now):
    first, second = review_db.add_characters("学习", now=now)
    review_db.attach_fill_test(second.id, sample_fill_test)
    review_db.grade_item(first.id, "good", now=now)
    review_db.submit_fill_test(second.id, [{"sentence_index": 0, "chosen_phrase_index": 1}], now=now)

    summaries = summarize_review_events(review_db.get_recent_events())

    assert summaries["flashcard"].grade_counts["good"] == 1
    assert summaries["fill_test"].grade_counts["hard"] == 1
    assert summaries["fill_test"].correct == 1
