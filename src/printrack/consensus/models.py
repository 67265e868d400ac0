"""Consensus data models shared by the learner, the stores, and the print compiler."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, Field

_KNOWN = 1
_WILDCARD = 0
_KNOWN_RUN = re.compile(rb"\x01+")


class Orientation(str, Enum):
    """Direction in which a consensus buffer addresses its sample bytes."""

    FORWARD = "d"
    REVERSE = "i"


class ConsensusBuffer:
    """Positional byte consensus with an out-of-band wildcard mask.

    Each cell holds either a fixed byte or WILDCARD. WILDCARD cells are stored
    as ``0x00`` in ``data`` and flagged ``0x00`` in ``known``; every fixed cell is
    flagged ``0x01``. Cells only ever move from fixed to WILDCARD.
    """

    __slots__ = ("_data", "_known")

    def __init__(
        self, data: bytes | bytearray = b"", known: bytes | bytearray | None = None
    ) -> None:
        self._data = bytearray(data)
        if known is None:
            self._known = bytearray(b"\x01" * len(self._data))
        else:
            if len(known) != len(self._data):
                raise ValueError("Consensus data and mask must have the same length.")
            self._known = bytearray(_KNOWN if flag else _WILDCARD for flag in known)
            for index, flag in enumerate(self._known):
                if not flag:
                    self._data[index] = 0

    @classmethod
    def from_sample(cls, sample: bytes | bytearray) -> "ConsensusBuffer":
        """Return a buffer whose cells are all fixed to ``sample``."""
        return cls(sample)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConsensusBuffer):
            return NotImplemented
        return self._data == other._data and self._known == other._known

    def __repr__(self) -> str:
        return f"ConsensusBuffer(length={len(self)}, wildcards={self.wildcard_count})"

    @property
    def data(self) -> bytes:
        """Cell bytes with WILDCARD cells rendered as ``0x00``."""
        return bytes(self._data)

    @property
    def known(self) -> bytes:
        """Mask with ``0x01`` for fixed cells and ``0x00`` for WILDCARD cells."""
        return bytes(self._known)

    @property
    def wildcard_count(self) -> int:
        return self._known.count(_WILDCARD)

    def cell(self, index: int) -> Optional[int]:
        """Return the fixed byte at ``index`` or ``None`` for WILDCARD."""
        if not self._known[index]:
            return None
        return self._data[index]

    def cells(self) -> Iterator[Optional[int]]:
        for index in range(len(self._data)):
            yield self.cell(index)

    def copy(self) -> "ConsensusBuffer":
        clone = ConsensusBuffer.__new__(ConsensusBuffer)
        clone._data = bytearray(self._data)
        clone._known = bytearray(self._known)
        return clone

    def intersect(self, offset: int, chunk: bytes) -> int:
        """Wildcard every fixed cell from ``offset`` on that disagrees with ``chunk``.

        Bytes of ``chunk`` that fall past the end of the buffer are ignored.

        Args:
            offset: Buffer index aligned with the first byte of ``chunk``.
            chunk: Sample bytes in buffer orientation.

        Returns:
            int: Number of cells that became WILDCARD.
        """
        end = min(offset + len(chunk), len(self._data))
        if end <= offset:
            return 0
        span = end - offset
        if self._data[offset:end] == chunk[:span]:
            return 0

        data = self._data
        known = self._known
        changed = 0
        for index in range(span):
            cell = offset + index
            if known[cell] and data[cell] != chunk[index]:
                known[cell] = _WILDCARD
                data[cell] = 0
                changed += 1
        return changed

    def grow(self, length: int) -> None:
        """Extend the buffer to ``length`` cells, appending WILDCARD cells."""
        missing = length - len(self._data)
        if missing > 0:
            self._data.extend(bytes(missing))
            self._known.extend(bytes(missing))

    def wildcard_from(self, length: int) -> int:
        """Turn every fixed cell at index ``length`` or beyond into WILDCARD.

        Returns:
            int: Number of cells that became WILDCARD.
        """
        if length >= len(self._data):
            return 0
        changed = self._known.count(_KNOWN, length)
        tail = len(self._data) - length
        self._known[length:] = bytes(tail)
        self._data[length:] = bytes(tail)
        return changed

    def runs(self) -> Iterator[tuple[int, bytes]]:
        """Yield ``(start, bytes)`` for each maximal run of fixed cells, in buffer order."""
        for match in _KNOWN_RUN.finditer(self._known):
            start, end = match.span()
            yield start, bytes(self._data[start:end])


class ConsensusMeta(BaseModel):
    """Bookkeeping stored next to a format's consensus buffers.

    Attributes:
        format: Format tag the consensus belongs to.
        samples: Number of samples learned so far.
        length: Number of cells in each buffer.
        forward_wildcards: WILDCARD cells in the forward buffer.
        reverse_wildcards: WILDCARD cells in the reverse buffer.
        created_at: When the format was first learned.
        updated_at: When the consensus was last committed.
    """

    format: str
    samples: int = 0
    length: int = 0
    forward_wildcards: int = 0
    reverse_wildcards: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class ConsensusEntry:
    """Forward and reverse consensus buffers for one format.

    Attributes:
        meta: Stored bookkeeping for the format.
        forward: Buffer indexed from the start of each sample.
        reverse: Buffer indexed from the end of each sample.
    """

    meta: ConsensusMeta
    forward: ConsensusBuffer
    reverse: ConsensusBuffer

    @property
    def format(self) -> str:
        return self.meta.format

    def buffer(self, orientation: Orientation) -> ConsensusBuffer:
        return self.forward if orientation is Orientation.FORWARD else self.reverse

    def refresh_meta(self) -> None:
        """Synchronize length and wildcard counters with the buffers."""
        self.meta.length = len(self.forward)
        self.meta.forward_wildcards = self.forward.wildcard_count
        self.meta.reverse_wildcards = self.reverse.wildcard_count

    def copy(self) -> "ConsensusEntry":
        return ConsensusEntry(
            meta=self.meta.model_copy(),
            forward=self.forward.copy(),
            reverse=self.reverse.copy(),
        )


__all__ = ["Orientation", "ConsensusBuffer", "ConsensusMeta", "ConsensusEntry"]
