import pytest

from hanzi_review.srs import database
from hanzi_review.srs.fill_test import FillTest
from hanzi_review.srs.memory_state import ReviewItem

NOW = 1_700_000_000_000


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def review_db(tmp_path, monkeypatch):
    """Point the database layer at a fresh SQLite file."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'reviews.db'}")
    monkeypatch.delenv("TEST_MODE", raising=False)
    database.dispose_engines()
    database.init_db()
    yield database
    database.dispose_engines()


@pytest.fixture
def sample_fill_test():
    return FillTest(
        phrases=("eat", "run", "sleep"),
        sentences=(
            {"text": "I like to ___ in the morning.", "answer_index": 1},
            {"text": "After lunch, I ___ a snack.", "answer_index": 0},
            {"text": "At night, I ___ early.", "answer_index": 2},
        ),
    )


@pytest.fixture
def make_item():
    def _make(**overrides):
        fields = {
            "id": "w1",
            "hanzi": "汉",
            "created_at": 1000,
            "repetitions": 2,
            "stability_days": 21.0,
            "interval_days": 3,
            "next_review_at": 1000,
        }
        fields.update(overrides)
        return ReviewItem(**fields)

    return _make
