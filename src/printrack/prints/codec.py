"""Wire codec for print files.

A print file is a flat concatenation of records::

    '<' offset '|' length '|' ('d' | 'i') '>' literal

``offset`` and ``length`` are decimal ASCII, ``d`` marks a FORWARD record and
``i`` a REVERSE one. Exactly ``length`` raw literal bytes follow the header and
the next header starts right after them. There is no file header or trailer.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator

from pydantic import ValidationError

from printrack.consensus.models import Orientation
from printrack.errors import MalformedPrintError

from .models import PrintRecord

_HEADER = re.compile(rb"<(\d+)\|(\d+)\|([di])>")


def encode_record(record: PrintRecord) -> bytes:
    """Return the wire form of one record."""
    header = f"<{record.offset}|{record.length}|{record.orientation.value}>"
    return header.encode("ascii") + record.literal


def encode_records(records: Iterable[PrintRecord]) -> bytes:
    """Return the wire form of a sequence of records, preserving order."""
    return b"".join(encode_record(record) for record in records)


def iter_records(payload: bytes) -> Iterator[PrintRecord]:
    """Decode records from ``payload`` lazily, in file order.

    Records before a fault are yielded before the error is raised, so callers
    can keep what was decoded.

    Raises:
        MalformedPrintError: On a bad header, a zero length, or a truncated literal.
    """
    position = 0
    total = len(payload)
    while position < total:
        match = _HEADER.match(payload, position)
        if match is None:
            raise MalformedPrintError(f"Expected a record header at byte {position}.")
        offset, length = int(match.group(1)), int(match.group(2))
        orientation = Orientation(match.group(3).decode("ascii"))
        start = match.end()
        literal = payload[start : start + length]
        if len(literal) != length:
            raise MalformedPrintError(
                f"Record at byte {position} announces {length} bytes but only "
                f"{len(literal)} remain."
            )
        try:
            record = PrintRecord(
                offset=offset, length=length, orientation=orientation, literal=literal
            )
        except ValidationError as exc:
            raise MalformedPrintError(f"Invalid record at byte {position}: {exc}") from exc
        yield record
        position = start + length


def decode_records(payload: bytes) -> list[PrintRecord]:
    """Decode every record in ``payload``.

    Raises:
        MalformedPrintError: If the payload violates the wire format.
    """
    return list(iter_records(payload))


__all__ = ["encode_record", "encode_records", "iter_records", "decode_records"]
