"""
SQLAlchemy ORM Models for the Review Database

Defines ReviewItem and ReviewEvent models. Timestamps are epoch
milliseconds so rows round-trip the in-memory state without conversion.
"""

from sqlalchemy import JSON, BigInteger, Column, Float, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ReviewItem(Base):
    """
    Persistent scheduling state for a single character.
    """
    __tablename__ = 'review_items'

    id = Column(String(64), primary_key=True)
    hanzi = Column(String(16), nullable=False, unique=True)

    # Display data, passed through untouched by scheduling
    pinyin = Column(String(255), nullable=True)
    meaning = Column(String(1024), nullable=True)

    created_at = Column(BigInteger, nullable=False)

    # Scheduling state
    repetitions = Column(Integer, nullable=False, default=0)
    stability_days = Column(Float, nullable=False)  # Formerly exported as "ease"
    interval_days = Column(Integer, nullable=False, default=0)
    next_review_at = Column(BigInteger, nullable=True, default=0, index=True)  # 0/NULL = due now

    # Observability counters
    review_count = Column(Integer, nullable=False, default=0)
    test_count = Column(Integer, nullable=False, default=0)

    # FillTest.model_dump(mode="json"), NULL when none is attached
    fill_test = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<ReviewItem({self.id}, {self.hanzi})>"


class ReviewEvent(Base):
    """
    Log entry for a single grading event (flashcard or fill test).
    """
    __tablename__ = 'review_events'

    id = Column(Integer, primary_key=True, autoincrement=True)

    item_id = Column(String(64), nullable=False, index=True)
    hanzi = Column(String(16), nullable=False)

    timestamp = Column(BigInteger, nullable=False, index=True)
    grade = Column(String(8), nullable=False)  # again/hard/good/easy
    source = Column(String(16), nullable=False)  # "flashcard" or "fill_test"
    correct_count = Column(Integer, nullable=True)  # Fill tests only

    recall_probability_before = Column(Float, nullable=True)

    # State before review
    stability_before = Column(Float, nullable=True)
    interval_before = Column(Integer, nullable=True)
    repetitions_before = Column(Integer, nullable=True)

    # State after review
    stability_after = Column(Float, nullable=False)
    interval_after = Column(Integer, nullable=False)
    repetitions_after = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<ReviewEvent(id={self.id}, {self.hanzi}, grade={self.grade}, source={self.source})>"
