"""
Database - Review Database I/O Operations

Handles all database operations for review items and review events.
Uses SQLAlchemy ORM; SQLite by default, any SQLAlchemy URL via DATABASE_URL.

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler, due and fill_test modules.
"""

from __future__ import annotations
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from dotenv import load_dotenv
from pydantic import ValidationError
from sqlalchemy import create_engine, event, inspect, or_
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from hanzi_review.srs.constants import (
    Grade,
    INITIAL_STABILITY_DAYS,
    REVIEW_SOURCES,
    SOURCE_FILL_TEST,
    SOURCE_FLASHCARD,
)
from hanzi_review.srs.due import merge_due_candidates
from hanzi_review.srs.fill_test import FillResult, FillTest, grade_fill_test
from hanzi_review.srs.memory_state import ReviewItem, new_review_item, now_ms
from hanzi_review.srs.models import Base, ReviewEvent as ReviewEventModel, ReviewItem as ReviewItemModel
from hanzi_review.srs.scheduler import apply_grade, build_review_event
from hanzi_review.text import extract_unique_hanzi

# Load environment
load_dotenv()

logger = logging.getLogger(__name__)

DB_DIR = Path(__file__).resolve().parent.parent.parent / "data"

# One engine per URL, reused across calls
_engines: dict[str, Engine] = {}


class ItemNotFoundError(KeyError):
    """Raised when a review item id does not exist."""


# ---- Configuration ----

def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url() -> str:
    """
    Get the database URL from environment variables.

    Falls back to a SQLite file under data/ when DATABASE_URL is unset.
    In test mode, 'hanzi_review' in the URL is replaced with
    'test_hanzi_review' so tests never touch the real database.

    Returns:
        SQLAlchemy database URL
    """
    base_url = os.getenv("DATABASE_URL")
    if not base_url:
        db_name = "test_hanzi_review.db" if is_test_mode() else "hanzi_review.db"
        return f"sqlite:///{DB_DIR / db_name}"

    if is_test_mode():
        return base_url.replace("hanzi_review", "test_hanzi_review")

    return base_url


# ---- Engine and sessions ----

def _use_immediate_transactions(engine: Engine):
    """
    Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, so two read-modify-write
    transactions could both read the old row. BEGIN IMMEDIATE serializes them.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_engine() -> Engine:
    """
    Get the SQLAlchemy engine for the configured database.

    Returns:
        SQLAlchemy Engine instance (cached per URL)
    """
    db_url = get_database_url()
    engine = _engines.get(db_url)
    if engine is not None:
        return engine

    url = make_url(db_url)
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            db_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False
        )
        _use_immediate_transactions(engine)
    else:
        engine = create_engine(
            db_url,
            pool_size=5,           # Keep 5 connections open
            max_overflow=10,       # Allow up to 10 extra connections
            pool_pre_ping=True,    # Verify connections before use
            echo=False
        )

    _engines[db_url] = engine
    return engine


def dispose_engines():
    """Close all pooled connections and forget cached engines."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


def get_session() -> Session:
    """
    Get a SQLAlchemy session for database operations.

    Returns:
        SQLAlchemy Session instance
    """
    SessionLocal = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return SessionLocal()


def init_db():
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times - only creates tables if they don't exist.
    """
    engine = get_engine()

    inspector = inspect(engine)
    existing_tables = inspector.get_table_names()

    if 'review_items' not in existing_tables or 'review_events' not in existing_tables:
        Base.metadata.create_all(engine)
        logger.info("Created review tables at %s", engine.url.render_as_string(hide_password=True))
        return

    # If tables exist, ensure schema includes the counters
    item_columns = {col["name"] for col in inspector.get_columns("review_items")}
    missing = {"stability_days", "review_count", "test_count"} - item_columns
    if missing:
        raise RuntimeError(
            f"review_items schema is missing columns {sorted(missing)}. "
            "Please reset or migrate the database."
        )


def reset_db():
    """
    DANGEROUS: Delete all data and recreate tables.

    All review history will be lost!
    """
    engine = get_engine()
    Base.metadata.drop_all(engine)
    logger.info("All review tables dropped")

    init_db()


# ---- Row conversion ----

def _load_fill_test(raw: Optional[dict], hanzi: str) -> Optional[FillTest]:
    if raw is None:
        return None
    try:
        return FillTest.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Ignoring invalid stored fill test for %s: %s", hanzi, exc)
        return None


def _to_item(db_item: ReviewItemModel) -> ReviewItem:
    return ReviewItem(
        id=db_item.id,
        hanzi=db_item.hanzi,
        created_at=db_item.created_at,
        repetitions=db_item.repetitions,
        stability_days=db_item.stability_days,
        interval_days=db_item.interval_days,
        next_review_at=db_item.next_review_at,
        review_count=db_item.review_count,
        test_count=db_item.test_count,
        pinyin=db_item.pinyin,
        meaning=db_item.meaning,
        fill_test=_load_fill_test(db_item.fill_test, db_item.hanzi),
    )


def _copy_to_row(item: ReviewItem, db_item: ReviewItemModel):
    db_item.hanzi = item.hanzi
    db_item.pinyin = item.pinyin
    db_item.meaning = item.meaning
    db_item.created_at = item.created_at
    db_item.repetitions = item.repetitions
    db_item.stability_days = item.stability_days
    db_item.interval_days = item.interval_days
    db_item.next_review_at = item.next_review_at
    db_item.review_count = item.review_count
    db_item.test_count = item.test_count
    db_item.fill_test = item.fill_test.model_dump(mode="json") if item.fill_test else None


def _to_row(item: ReviewItem) -> ReviewItemModel:
    db_item = ReviewItemModel(id=item.id)
    _copy_to_row(item, db_item)
    return db_item


def _locked_row(session: Session, item_id: str) -> ReviewItemModel:
    db_item = session.query(ReviewItemModel).filter(
        ReviewItemModel.id == item_id
    ).with_for_update().first()

    if db_item is None:
        raise ItemNotFoundError(item_id)
    return db_item


# ---- Items ----

def add_characters(text: str, now: Optional[int] = None) -> list[ReviewItem]:
    """
    Add every Han character in `text` that is not tracked yet.

    Characters keep their order of first appearance; created_at is offset
    by one millisecond per character so that order survives sorting.

    Args:
        text: Free text containing Chinese characters
        now: Creation time in epoch ms (defaults to now)

    Returns:
        The newly created items (existing characters are skipped)
    """
    characters = extract_unique_hanzi(text)
    if not characters:
        return []

    if now is None:
        now = now_ms()

    session = get_session()
    try:
        with session.begin():
            existing = {
                hanzi for (hanzi,) in session.query(ReviewItemModel.hanzi).filter(
                    ReviewItemModel.hanzi.in_(characters)
                )
            }
            to_add = [char for char in characters if char not in existing]
            new_items = [
                new_review_item(char, created_at=now + index)
                for index, char in enumerate(to_add)
            ]
            session.add_all([_to_row(item) for item in new_items])

        logger.info(
            "Added %d character(s), skipped %d existing",
            len(new_items), len(characters) - len(new_items)
        )
        return new_items
    finally:
        session.close()


def load_item(item_id: str) -> Optional[ReviewItem]:
    """
    Load a review item from the database.

    Returns:
        ReviewItem if found, None otherwise
    """
    session = get_session()
    try:
        db_item = session.query(ReviewItemModel).filter(
            ReviewItemModel.id == item_id
        ).first()

        if db_item is None:
            return None
        return _to_item(db_item)
    finally:
        session.close()


def get_item_by_hanzi(hanzi: str) -> Optional[ReviewItem]:
    session = get_session()
    try:
        db_item = session.query(ReviewItemModel).filter(
            ReviewItemModel.hanzi == hanzi.strip()
        ).first()

        if db_item is None:
            return None
        return _to_item(db_item)
    finally:
        session.close()


def save_item(item: ReviewItem):
    """
    Save a review item (insert or update).

    Args:
        item: ReviewItem to save
    """
    session = get_session()
    try:
        with session.begin():
            db_item = session.query(ReviewItemModel).filter(
                ReviewItemModel.id == item.id
            ).first()

            if db_item is None:
                session.add(_to_row(item))
            else:
                _copy_to_row(item, db_item)
    finally:
        session.close()


def list_items() -> list[ReviewItem]:
    """
    Get all review items, newest first.
    """
    session = get_session()
    try:
        db_items = session.query(ReviewItemModel).order_by(
            ReviewItemModel.created_at.desc()
        ).all()
        return [_to_item(db_item) for db_item in db_items]
    finally:
        session.close()


def delete_item(item_id: str):
    """
    Delete a review item. Its review events are kept for history.

    Raises:
        ItemNotFoundError: if the item does not exist
    """
    session = get_session()
    try:
        with session.begin():
            session.delete(_locked_row(session, item_id))
        logger.info("Deleted review item %s", item_id)
    finally:
        session.close()


def reset_item(item_id: str, now: Optional[int] = None) -> ReviewItem:
    """
    Put an item back into the never-reviewed state.

    Display data and the attached fill test are kept.

    Raises:
        ItemNotFoundError: if the item does not exist
    """
    if now is None:
        now = now_ms()

    session = get_session()
    try:
        with session.begin():
            db_item = _locked_row(session, item_id)
            item = replace(
                _to_item(db_item),
                created_at=now,
                repetitions=0,
                stability_days=INITIAL_STABILITY_DAYS,
                interval_days=0,
                next_review_at=0,
                review_count=0,
                test_count=0,
            )
            _copy_to_row(item, db_item)
        return item
    finally:
        session.close()


def attach_fill_test(item_id: str, fill_test: Union[FillTest, dict]) -> ReviewItem:
    """
    Attach (or replace) the fill test for an item.

    Raises:
        ItemNotFoundError: if the item does not exist
        pydantic.ValidationError: if fill_test is not a valid fill test
    """
    if not isinstance(fill_test, FillTest):
        fill_test = FillTest.model_validate(fill_test)

    session = get_session()
    try:
        with session.begin():
            db_item = _locked_row(session, item_id)
            db_item.fill_test = fill_test.model_dump(mode="json")
            item = _to_item(db_item)
        return item
    finally:
        session.close()


def detach_fill_test(item_id: str) -> ReviewItem:
    session = get_session()
    try:
        with session.begin():
            db_item = _locked_row(session, item_id)
            db_item.fill_test = None
            item = _to_item(db_item)
        return item
    finally:
        session.close()


# ---- Grading ----

def _apply_grade_to_row(
    session: Session,
    db_item: ReviewItemModel,
    grade: Grade,
    source: str,
    now: int,
    correct_count: Optional[int]
) -> ReviewItem:
    """Grade a locked row in the caller's transaction and queue its event."""
    before = _to_item(db_item)

    after = apply_grade(before, grade, now)
    if source == SOURCE_FILL_TEST:
        after = replace(after, test_count=(after.test_count or 0) + 1)
    else:
        after = replace(after, review_count=(after.review_count or 0) + 1)

    _copy_to_row(after, db_item)
    session.add(ReviewEventModel(
        **build_review_event(before, after, grade, source, now, correct_count)
    ))

    logger.debug(
        "Graded %s %s via %s: S %.2f -> %.2f, interval %d day(s)",
        after.hanzi, grade.value, source,
        before.stability_days, after.stability_days, after.interval_days
    )
    return after


def grade_item(
    item_id: str,
    grade: Union[Grade, str],
    source: str = SOURCE_FLASHCARD,
    now: Optional[int] = None,
    correct_count: Optional[int] = None
) -> ReviewItem:
    """
    Grade an item and persist the result in one transaction.

    The row is locked for the whole read-modify-write, so concurrent
    grading of the same item is applied one after the other and no
    update is lost.

    Args:
        item_id: Item to grade
        grade: Review grade (or fill-test tier)
        source: "flashcard" (bumps review_count) or "fill_test" (bumps test_count)
        now: Grading time in epoch ms (defaults to now)
        correct_count: Fill-test score, logged with the event

    Returns:
        The updated ReviewItem

    Raises:
        ValueError: for an unknown grade or source
        ItemNotFoundError: if the item does not exist
    """
    grade = Grade(grade)
    if source not in REVIEW_SOURCES:
        raise ValueError(f"Unknown review source: {source!r}")
    if now is None:
        now = now_ms()

    session = get_session()
    try:
        with session.begin():
            db_item = _locked_row(session, item_id)
            after = _apply_grade_to_row(session, db_item, grade, source, now, correct_count)
        return after
    finally:
        session.close()


def submit_fill_test(
    item_id: str,
    placements: Iterable[Any],
    now: Optional[int] = None
) -> tuple[ReviewItem, FillResult]:
    """
    Grade a fill-test submission and feed its tier into the scheduler.

    The fill test is read from the locked row, so the tier always comes
    from the test attached at grading time.

    Returns:
        (updated_item, fill_result)

    Raises:
        ItemNotFoundError: if the item does not exist
        ValueError: if the item has no fill test attached
    """
    if now is None:
        now = now_ms()

    session = get_session()
    try:
        with session.begin():
            db_item = _locked_row(session, item_id)
            fill_test = _load_fill_test(db_item.fill_test, db_item.hanzi)
            if fill_test is None:
                raise ValueError(f"No fill test attached to {db_item.hanzi!r}")

            result = grade_fill_test(fill_test, placements)
            updated = _apply_grade_to_row(
                session, db_item, result.tier, SOURCE_FILL_TEST, now, result.correct_count
            )
        return updated, result
    finally:
        session.close()


# ---- Queries ----

def get_due_items(now: Optional[int] = None) -> list[ReviewItem]:
    """
    Get items due for review, most overdue first.

    Runs the next_review_at range query and the never-scheduled query
    separately and merges them, so new items are neither missed nor
    counted twice whatever the backend does with 0/NULL in the range scan.

    Args:
        now: Current time in epoch ms (defaults to now)

    Returns:
        Due ReviewItems in review order
    """
    if now is None:
        now = now_ms()

    session = get_session()
    try:
        scheduled = session.query(ReviewItemModel).filter(
            ReviewItemModel.next_review_at <= now
        ).all()
        unscheduled = session.query(ReviewItemModel).filter(
            or_(
                ReviewItemModel.next_review_at.is_(None),
                ReviewItemModel.next_review_at == 0
            )
        ).all()

        return merge_due_candidates(
            [_to_item(db_item) for db_item in scheduled],
            [_to_item(db_item) for db_item in unscheduled],
            now
        )
    finally:
        session.close()


def get_recent_events(limit: int = 10, item_id: Optional[str] = None) -> list[dict]:
    """
    Get recent review events.

    Args:
        limit: Maximum number of events to return
        item_id: Only return events for this item

    Returns:
        List of recent events (newest first)
    """
    session = get_session()
    try:
        query = session.query(ReviewEventModel)
        if item_id is not None:
            query = query.filter(ReviewEventModel.item_id == item_id)

        events = query.order_by(
            ReviewEventModel.timestamp.desc(),
            ReviewEventModel.id.desc()
        ).limit(limit).all()

        return [
            {
                "id": ev.id,
                "item_id": ev.item_id,
                "hanzi": ev.hanzi,
                "timestamp": ev.timestamp,
                "grade": ev.grade,
                "source": ev.source,
                "correct_count": ev.correct_count,
                "recall_probability_before": ev.recall_probability_before,
                "stability_before": ev.stability_before,
                "interval_before": ev.interval_before,
                "repetitions_before": ev.repetitions_before,
                "stability_after": ev.stability_after,
                "interval_after": ev.interval_after,
                "repetitions_after": ev.repetitions_after,
            }
            for ev in events
        ]
    finally:
        session.close()
