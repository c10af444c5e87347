"""
Import of word records exported by the earlier browser app.

Those records keep stability in a field named "ease" (left over from an
SM-2 style scheduler) and use camelCase keys. Converting them yields a
ReviewItem with the same schedule.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hanzi_review.srs import database
from hanzi_review.srs.fill_test import FillTest
from hanzi_review.srs.memory_state import ReviewItem

logger = logging.getLogger(__name__)


class LegacyWord(BaseModel):
    """One exported word record."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    hanzi: str = Field(..., min_length=1)
    pinyin: Optional[str] = None
    meaning: Optional[str] = None
    created_at: int = Field(0, alias="createdAt")

    repetitions: int = Field(0, ge=0)
    interval_days: int = Field(0, ge=0, alias="intervalDays")
    ease: float = Field(0.0, description="Forgetting-curve stability in days")
    next_review_at: Optional[int] = Field(0, alias="nextReviewAt")

    review_count: Optional[int] = Field(None, alias="reviewCount")
    test_count: Optional[int] = Field(None, alias="testCount")

    fill_test: Optional[FillTest] = Field(None, alias="fillTest")

    def to_review_item(self) -> ReviewItem:
        """
        Convert to a ReviewItem, moving `ease` into stability_days.

        Missing review counts fall back to repetitions, as the old app did.
        """
        return ReviewItem(
            id=self.id,
            hanzi=self.hanzi.strip(),
            created_at=self.created_at,
            repetitions=self.repetitions,
            stability_days=self.ease,
            interval_days=self.interval_days,
            next_review_at=self.next_review_at or 0,
            review_count=self.review_count if self.review_count is not None else self.repetitions,
            test_count=self.test_count or 0,
            pinyin=self.pinyin,
            meaning=self.meaning,
            fill_test=self.fill_test,
        )


IMPORTED = "imported"
DUPLICATE = "duplicate"
CONFLICT = "conflict"
INVALID = "invalid"


@dataclass(frozen=True)
class ImportOutcome:
    index: int  # 1-based position in the export
    status: str
    hanzi: Optional[str] = None
    detail: str = ""


@dataclass
class ImportReport:
    outcomes: list[ImportOutcome] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def imported(self) -> int:
        return self.count(IMPORTED)

    @property
    def duplicates(self) -> int:
        return self.count(DUPLICATE)

    @property
    def conflicts(self) -> int:
        return self.count(CONFLICT)

    @property
    def invalid(self) -> int:
        return self.count(INVALID)


def import_legacy_words(records: Iterable[Any], dry_run: bool = False) -> ImportReport:
    """
    Validate legacy records and save the new ones.

    A record is a duplicate when its character is already stored or
    appeared earlier in the same export, and a conflict when its id is
    already used by a different character. Neither is written. Dry runs
    track what this run would have written, so both modes report the
    same counts.

    Args:
        records: Raw exported word dicts
        dry_run: If True, nothing is saved

    Returns:
        ImportReport with one outcome per record
    """
    report = ImportReport()
    seen_hanzi: set[str] = set()
    seen_ids: set[str] = set()

    for index, record in enumerate(records, start=1):
        try:
            item = LegacyWord.model_validate(record).to_review_item()
        except ValidationError as e:
            report.outcomes.append(ImportOutcome(index, INVALID, detail=f"{e.error_count()} error(s)"))
            continue

        if item.hanzi in seen_hanzi or database.get_item_by_hanzi(item.hanzi) is not None:
            report.outcomes.append(ImportOutcome(index, DUPLICATE, item.hanzi))
            continue

        if item.id in seen_ids or database.load_item(item.id) is not None:
            report.outcomes.append(
                ImportOutcome(index, CONFLICT, item.hanzi, detail=f"id {item.id} already in use")
            )
            continue

        if not dry_run:
            database.save_item(item)
        seen_hanzi.add(item.hanzi)
        seen_ids.add(item.id)
        report.outcomes.append(ImportOutcome(index, IMPORTED, item.hanzi))

    logger.info(
        "Legacy import%s: %d imported, %d duplicate, %d conflict, %d invalid",
        " (dry run)" if dry_run else "",
        report.imported, report.duplicates, report.conflicts, report.invalid
    )
    return report
