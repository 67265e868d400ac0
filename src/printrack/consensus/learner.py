"""Learning: fold sample files into a format's consensus buffers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List

from pydantic import BaseModel, Field

from printrack.errors import NotFoundError, PrintrackError
from printrack.paths import require_format

from .models import ConsensusBuffer, ConsensusEntry, ConsensusMeta
from .store import ConsensusStore

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class LearnOutcome(BaseModel):
    """Result of folding one sample into a consensus.

    Attributes:
        format: Format tag that was learned.
        path: Sample file that was read.
        created: True when the sample seeded a new format.
        samples: Samples learned for the format after this call.
        length: Cells per buffer after this call.
        newly_wildcarded: Cells (both orientations) that this sample turned into WILDCARD.
        forward_wildcards: WILDCARD cells in the forward buffer.
        reverse_wildcards: WILDCARD cells in the reverse buffer.
    """

    format: str
    path: Path
    created: bool
    samples: int
    length: int
    newly_wildcarded: int = 0
    forward_wildcards: int = 0
    reverse_wildcards: int = 0


class LearnReport(BaseModel):
    """Aggregated outcomes for a sequence of learn calls."""

    outcomes: List[LearnOutcome] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def formats(self) -> list[str]:
        return sorted({outcome.format for outcome in self.outcomes})


def iter_chunks(handle: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    """Yield the stream's bytes from its current position in ``chunk_size`` pieces."""
    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            return
        yield chunk


def iter_reverse_chunks(handle: BinaryIO, size: int, chunk_size: int) -> Iterator[bytes]:
    """Yield the first ``size`` bytes of the stream end-to-start, each chunk already reversed.

    Raises:
        NotFoundError: If the stream returns fewer bytes than ``size`` promised.
    """
    end = size
    while end > 0:
        start = max(0, end - chunk_size)
        handle.seek(start)
        chunk = handle.read(end - start)
        if len(chunk) != end - start:
            raise NotFoundError("Sample changed size while it was being read.")
        yield chunk[::-1]
        end = start


class Learner:
    """Build and refine consensus buffers from sample files.

    A new format is seeded from its first sample. Later samples are intersected
    cell by cell: a disagreeing fixed cell becomes WILDCARD. When sample and
    buffer lengths differ, the shorter side counts as disagreeing, so the
    buffer grows to the longest sample seen and the cells not covered by every
    sample end up WILDCARD.
    """

    def __init__(self, store: ConsensusStore, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive.")
        self.store = store
        self.chunk_size = chunk_size

    def learn(self, format_name: str, sample: Path | str) -> LearnOutcome:
        """Fold ``sample`` into the consensus for ``format_name`` and persist it.

        The stored consensus is only replaced after the sample was read in full.

        Args:
            format_name: Format tag the sample belongs to.
            sample: Path of the sample file.

        Returns:
            LearnOutcome: Summary of the updated consensus.

        Raises:
            NoExtensionError: If ``format_name`` is empty.
            NotFoundError: If the sample cannot be opened or read.
        """
        format_name = require_format(format_name)
        path = Path(sample)
        try:
            with path.open("rb") as handle:
                if self.store.exists(format_name):
                    entry = self.store.load(format_name)
                    changed = self._refine(entry, handle)
                    created = False
                else:
                    entry = self._seed(format_name, handle)
                    changed = 0
                    created = True
        except (FileNotFoundError, IsADirectoryError, PermissionError) as exc:
            raise NotFoundError(f"File not found {str(path)!r}.") from exc
        except OSError as exc:
            raise NotFoundError(f"Unable to read {str(path)!r}: {exc}") from exc

        entry.meta.samples += 1
        self.store.save(entry)

        outcome = LearnOutcome(
            format=format_name,
            path=path,
            created=created,
            samples=entry.meta.samples,
            length=len(entry.forward),
            newly_wildcarded=changed,
            forward_wildcards=entry.forward.wildcard_count,
            reverse_wildcards=entry.reverse.wildcard_count,
        )
        LOGGER.info(
            "%s %s from %s: %d cells, %d newly wildcarded.",
            "Seeded" if created else "Refined",
            format_name,
            path,
            outcome.length,
            changed,
        )
        return outcome

    def learn_many(self, samples: Iterable[tuple[str, Path | str]]) -> LearnReport:
        """Learn ``(format, path)`` pairs in order, collecting failures per sample."""
        report = LearnReport()
        for format_name, sample in samples:
            try:
                report.outcomes.append(self.learn(format_name, sample))
            except PrintrackError as exc:
                LOGGER.warning("Skipping %s: %s", sample, exc)
                report.errors.append(f"{sample}: {exc}")
        return report

    def _seed(self, format_name: str, handle: BinaryIO) -> ConsensusEntry:
        content = bytearray()
        for chunk in iter_chunks(handle, self.chunk_size):
            content.extend(chunk)
        return ConsensusEntry(
            meta=ConsensusMeta(format=format_name),
            forward=ConsensusBuffer.from_sample(content),
            reverse=ConsensusBuffer.from_sample(content[::-1]),
        )

    def _refine(self, entry: ConsensusEntry, handle: BinaryIO) -> int:
        size = os.fstat(handle.fileno()).st_size
        forward = entry.forward
        reverse = entry.reverse

        target = max(len(forward), size)
        changed = (target - len(forward)) + (target - len(reverse))
        forward.grow(target)
        reverse.grow(target)

        offset = 0
        for chunk in iter_chunks(handle, self.chunk_size):
            changed += forward.intersect(offset, chunk)
            offset += len(chunk)
        if offset != size:
            raise NotFoundError("Sample changed size while it was being read.")

        offset = 0
        for chunk in iter_reverse_chunks(handle, size, self.chunk_size):
            changed += reverse.intersect(offset, chunk)
            offset += len(chunk)

        changed += forward.wildcard_from(size)
        changed += reverse.wildcard_from(size)
        return changed


__all__ = [
    "Learner",
    "LearnOutcome",
    "LearnReport",
    "iter_chunks",
    "iter_reverse_chunks",
    "DEFAULT_CHUNK_SIZE",
]
