"""
Fill Test - Definitions and Grading

A fill test shows three sentences with a blank and three candidate
phrases. The learner places a phrase into each blank; the number of
correct blanks maps onto the same grade scale flashcards use.

Grading never raises on placements: they come from UI state that can be
incomplete mid-session, so anything malformed counts as unanswered.
"""

from __future__ import annotations
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hanzi_review.srs.constants import Tier


SENTENCE_INDICES = (0, 1, 2)


# ---- Definitions ----

class FillSentence(BaseModel):
    """A sentence with one blank and the index of the phrase that fills it."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field("", description="Sentence text with a blank")
    answer_index: int = Field(..., ge=0, le=2, alias="answerIndex")


class FillTest(BaseModel):
    """Three candidate phrases and three sentences to fill."""
    model_config = ConfigDict(frozen=True)

    phrases: tuple[str, str, str]
    sentences: tuple[FillSentence, FillSentence, FillSentence]

    @field_validator("phrases")
    @classmethod
    def _phrases_distinct(cls, phrases: tuple[str, str, str]) -> tuple[str, str, str]:
        cleaned = tuple(phrase.strip() for phrase in phrases)
        if any(not phrase for phrase in cleaned):
            raise ValueError("fill test phrases must be non-empty")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("fill test phrases must be distinct")
        return cleaned


# ---- Submissions and results ----

@dataclass(frozen=True)
class Placement:
    """One learner action: phrase `chosen_phrase_index` put into sentence `sentence_index`."""
    sentence_index: int
    chosen_phrase_index: int


@dataclass(frozen=True)
class SentenceResult:
    sentence_index: int
    expected_phrase_index: int
    chosen_phrase_index: Optional[int]
    is_correct: bool


@dataclass(frozen=True)
class FillResult:
    correct_count: int
    tier: Tier
    sentence_results: list[SentenceResult]
    placements: list = field(default_factory=list)


def is_index(value: Any) -> bool:
    """
    True for a whole number in {0, 1, 2}.

    Integral floats such as 1.0 count, since JSON clients may send them;
    bools, fractional floats and strings do not.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return value.is_integer() and 0 <= value <= 2
    return isinstance(value, int) and 0 <= value <= 2


def tier_from_correct_count(correct_count: int) -> Tier:
    if correct_count == 3:
        return Tier.EASY
    if correct_count == 2:
        return Tier.GOOD
    if correct_count == 1:
        return Tier.HARD
    return Tier.AGAIN


def _placement_value(raw: Any, name: str, camel_name: str) -> Any:
    """Read a placement field from a Placement-like object or a mapping."""
    if isinstance(raw, Mapping):
        if name in raw:
            return raw[name]
        return raw.get(camel_name)
    return getattr(raw, name, None)


def grade_fill_test(fill_test: FillTest, placements: Optional[Iterable[Any]]) -> FillResult:
    """
    Grade a fill-test submission.

    Placements are applied in input order; the last valid placement for a
    sentence wins. Placements with an index outside {0, 1, 2} (or not a
    whole number at all) are skipped and the sentence stays unanswered.

    Args:
        fill_test: Fill test snapshot (a FillTest or a mapping that validates as one)
        placements: Placement objects or mappings with
            sentence_index/chosen_phrase_index (camelCase keys also accepted)

    Returns:
        FillResult with per-sentence detail, the tier and the echoed placements
    """
    if not isinstance(fill_test, FillTest):
        fill_test = FillTest.model_validate(fill_test)

    submitted = list(placements) if placements is not None else []

    chosen_by_sentence: list[Optional[int]] = [None, None, None]
    for raw in submitted:
        sentence_index = _placement_value(raw, "sentence_index", "sentenceIndex")
        chosen_phrase_index = _placement_value(raw, "chosen_phrase_index", "chosenPhraseIndex")

        if not is_index(sentence_index) or not is_index(chosen_phrase_index):
            continue

        chosen_by_sentence[int(sentence_index)] = int(chosen_phrase_index)

    sentence_results = []
    for sentence_index in SENTENCE_INDICES:
        expected = fill_test.sentences[sentence_index].answer_index
        chosen = chosen_by_sentence[sentence_index]
        sentence_results.append(
            SentenceResult(
                sentence_index=sentence_index,
                expected_phrase_index=expected,
                chosen_phrase_index=chosen,
                is_correct=chosen is not None and chosen == expected,
            )
        )

    correct_count = sum(1 for result in sentence_results if result.is_correct)

    return FillResult(
        correct_count=correct_count,
        tier=tier_from_correct_count(correct_count),
        sentence_results=sentence_results,
        placements=submitted,
    )
