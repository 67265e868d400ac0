"""Identification: score a candidate file against every print in the corpus."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import BinaryIO, Iterable

from printrack.errors import (
    EmptyCorpusError,
    MalformedPrintError,
    NotFoundError,
    NotLearnedError,
    StoreError,
)
from printrack.prints.codec import iter_records
from printrack.prints.corpus import PrintCorpus
from printrack.prints.models import PrintRecord

from .models import Guess, IdentificationResult, rank_guesses

LOGGER = logging.getLogger(__name__)


def record_matches(handle: BinaryIO, file_size: int, record: PrintRecord) -> bool:
    """Return True when the candidate holds ``record.literal`` at the record's position.

    Positions that fall outside the candidate, and short reads, are misses.
    """
    start = record.start(file_size)
    if start < 0 or start + record.length > file_size:
        return False
    handle.seek(start)
    window = handle.read(record.length)
    return window == record.literal


def _accumulate(
    guess: Guess,
    records: Iterable[PrintRecord],
    handle: BinaryIO,
    file_size: int,
) -> None:
    for record in records:
        guess.total_records += 1
        if record_matches(handle, file_size, record):
            guess.matched_records += 1
            if record.is_header:
                guess.header_matched = True


class Matcher:
    """Rank formats for a candidate file using the print corpus."""

    def __init__(self, corpus: PrintCorpus, *, workers: int = 1) -> None:
        self.corpus = corpus
        self.workers = max(1, workers)

    def identify(self, candidate: Path | str) -> IdentificationResult:
        """Score ``candidate`` against every print and rank the formats.

        Args:
            candidate: Path of the file to identify.

        Returns:
            IdentificationResult: Full ranking plus per-print tallies.

        Raises:
            NotFoundError: If the candidate cannot be opened.
            NotLearnedError: If the corpus location does not exist.
            EmptyCorpusError: If the corpus holds no prints.
        """
        path = Path(candidate)
        if not path.is_file():
            raise NotFoundError(f"File not found {str(path)!r}.")
        formats = self._formats()
        try:
            size = path.stat().st_size
            if self.workers > 1 and len(formats) > 1:
                outcomes = self._score_parallel(path, size, formats)
            else:
                with path.open("rb") as handle:
                    outcomes = [self.score(name, handle, size) for name in formats]
        except OSError as exc:
            raise NotFoundError(f"Unable to read {str(path)!r}: {exc}") from exc
        return self._result(path, size, outcomes)

    def identify_stream(self, handle: BinaryIO, *, label: str = "<stream>") -> IdentificationResult:
        """Identify an already opened, seekable binary stream."""
        formats = self._formats()
        size = handle.seek(0, os.SEEK_END)
        outcomes = [self.score(name, handle, size) for name in formats]
        return self._result(Path(label), size, outcomes)

    def score(self, format_name: str, handle: BinaryIO, file_size: int) -> tuple[Guess, str | None]:
        """Score one print, keeping the tally of records decoded before any fault.

        A print that cannot be read scores zero records; the fault is returned
        alongside the guess instead of being raised.
        """
        guess = Guess(format=format_name)
        error: str | None = None
        try:
            payload = self.corpus.read(format_name)
        except (NotLearnedError, StoreError) as exc:
            LOGGER.warning("Skipping print for %s: %s", format_name, exc)
            return guess, f"{format_name}: {exc}"

        try:
            _accumulate(guess, iter_records(payload), handle, file_size)
        except MalformedPrintError as exc:
            error = f"{format_name}: {exc}"
            LOGGER.warning(
                "Print for %s is malformed; keeping %d records: %s",
                format_name,
                guess.total_records,
                exc,
            )
        LOGGER.debug(
            "%s: %d/%d records matched, header=%s",
            format_name,
            guess.matched_records,
            guess.total_records,
            guess.header_matched,
        )
        return guess, error

    def _formats(self) -> list[str]:
        formats = self.corpus.formats()
        if not formats:
            raise EmptyCorpusError(
                "The prints folder is empty; print files are needed to identify a file format."
            )
        return formats

    def _score_parallel(
        self, path: Path, size: int, formats: list[str]
    ) -> list[tuple[Guess, str | None]]:
        def _score_one(format_name: str) -> tuple[Guess, str | None]:
            with path.open("rb") as handle:
                return self.score(format_name, handle, size)

        with ThreadPoolExecutor(max_workers=min(self.workers, len(formats))) as executor:
            return list(executor.map(_score_one, formats))

    def _result(
        self, path: Path, size: int, outcomes: list[tuple[Guess, str | None]]
    ) -> IdentificationResult:
        guesses = [guess for guess, _ in outcomes]
        errors = [error for _, error in outcomes if error]
        return IdentificationResult(
            candidate=path,
            size_bytes=size,
            answers=rank_guesses(guesses),
            guesses=guesses,
            errors=errors,
        )


__all__ = ["Matcher", "record_matches"]
