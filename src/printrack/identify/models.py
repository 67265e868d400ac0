"""Identification result models."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

HEADER_BONUS = 10


class Guess(BaseModel):
    """Tally of one print file scored against a candidate.

    Attributes:
        format: Format tag of the print file.
        total_records: Records decoded from the print file.
        matched_records: Records whose literal matched the candidate exactly.
        header_matched: True when a FORWARD record at offset 0 matched.
    """

    format: str
    total_records: int = 0
    matched_records: int = 0
    header_matched: bool = False

    @property
    def percent(self) -> int:
        if self.total_records == 0:
            return 0
        return self.matched_records * 100 // self.total_records


class RankedAnswer(BaseModel):
    """A scored format candidate.

    Attributes:
        format: Format tag.
        percent: Share of matched records, ``matched * 100 // total``.
        weight: ``percent * matched``, multiplied by ten when the header matched.
        total_records: Records in the print file.
        matched_records: Records that matched.
        header_matched: True when the file header matched this format.
    """

    format: str
    percent: int
    weight: int
    total_records: int
    matched_records: int
    header_matched: bool

    @classmethod
    def from_guess(cls, guess: Guess) -> Optional["RankedAnswer"]:
        """Score ``guess``, returning None when no record matched."""
        percent = guess.percent
        if percent <= 0:
            return None
        weight = percent * guess.matched_records
        if guess.header_matched:
            weight *= HEADER_BONUS
        return cls(
            format=guess.format,
            percent=percent,
            weight=weight,
            total_records=guess.total_records,
            matched_records=guess.matched_records,
            header_matched=guess.header_matched,
        )


def rank_guesses(guesses: List[Guess]) -> list[RankedAnswer]:
    """Return answers for matching guesses, heaviest first, ties by format name."""
    answers = [answer for answer in map(RankedAnswer.from_guess, guesses) if answer is not None]
    answers.sort(key=lambda answer: (-answer.weight, answer.format))
    return answers


class IdentificationResult(BaseModel):
    """Outcome of identifying one candidate against the print corpus.

    Attributes:
        candidate: File that was identified.
        size_bytes: Size of the candidate.
        answers: Ranked answers, heaviest first. Never truncated.
        guesses: Raw tallies for every print file, in corpus order.
        errors: Print files that could only be partly decoded.
    """

    candidate: Path
    size_bytes: int
    answers: List[RankedAnswer] = Field(default_factory=list)
    guesses: List[Guess] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def best(self) -> Optional[RankedAnswer]:
        return self.answers[0] if self.answers else None

    def top(self, limit: int) -> tuple[list[RankedAnswer], int]:
        """Return the first ``limit`` answers and how many were left out."""
        if limit <= 0:
            return list(self.answers), 0
        shown = self.answers[:limit]
        return shown, len(self.answers) - len(shown)


__all__ = ["Guess", "RankedAnswer", "IdentificationResult", "rank_guesses", "HEADER_BONUS"]
