"""Print record models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from printrack.consensus.models import Orientation


class PrintRecord(BaseModel):
    """A literal byte run anchored at a fixed position of a file.

    Attributes:
        offset: Distance from the start of the file (FORWARD) or, for REVERSE
            records, the distance from the end of the file to the first byte of
            the run, so the run starts at ``file_size - offset``.
        length: Number of literal bytes.
        orientation: Addressing mode of ``offset``.
        literal: Expected bytes in file order.
    """

    model_config = ConfigDict(frozen=True)

    offset: int = Field(ge=0)
    length: int = Field(ge=1)
    orientation: Orientation
    literal: bytes

    @model_validator(mode="after")
    def _literal_matches_length(self) -> "PrintRecord":
        if len(self.literal) != self.length:
            raise ValueError(
                f"literal holds {len(self.literal)} bytes but length is {self.length}"
            )
        return self

    def start(self, file_size: int) -> int:
        """Return the absolute start position of the run in a file of ``file_size`` bytes."""
        if self.orientation is Orientation.FORWARD:
            return self.offset
        return file_size - self.offset

    @property
    def is_header(self) -> bool:
        """True for a FORWARD record anchored at the very start of the file."""
        return self.orientation is Orientation.FORWARD and self.offset == 0


class PrintFile(BaseModel):
    """All print records compiled for one format, FORWARD records first."""

    format: str
    records: List[PrintRecord] = Field(default_factory=list)

    def encode(self) -> bytes:
        from .codec import encode_records

        return encode_records(self.records)

    @property
    def forward_count(self) -> int:
        return sum(1 for record in self.records if record.orientation is Orientation.FORWARD)

    @property
    def reverse_count(self) -> int:
        return len(self.records) - self.forward_count


__all__ = ["PrintRecord", "PrintFile"]
