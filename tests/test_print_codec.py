"""Print wire codec tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from printrack.consensus import Orientation
from printrack.errors import MalformedPrintError
from printrack.prints import (
    PrintRecord,
    decode_records,
    encode_record,
    encode_records,
    iter_records,
)


def test_encode_forward_and_reverse_headers() -> None:
    forward = PrintRecord(offset=0, length=3, orientation=Orientation.FORWARD, literal=b"PK\x03")
    reverse = PrintRecord(offset=12, length=2, orientation=Orientation.REVERSE, literal=b"\r\n")

    assert encode_record(forward) == b"<0|3|d>PK\x03"
    assert encode_record(reverse) == b"<12|2|i>\r\n"


def test_literals_may_contain_delimiter_bytes() -> None:
    records = [
        PrintRecord(offset=4, length=5, orientation=Orientation.FORWARD, literal=b"<1|2>"),
        PrintRecord(offset=9, length=1, orientation=Orientation.REVERSE, literal=b"|"),
    ]

    assert decode_records(encode_records(records)) == records


def test_empty_payload_has_no_records() -> None:
    assert decode_records(b"") == []


def test_records_before_a_bad_header_are_still_yielded() -> None:
    decoded = []

    with pytest.raises(MalformedPrintError):
        for record in iter_records(b"<0|2|d>ab<oops"):
            decoded.append(record)

    assert [record.literal for record in decoded] == [b"ab"]


@pytest.mark.parametrize(
    "payload",
    [
        b"<0|5|d>abc",
        b"<0|0|d>",
        b"<0|1|x>a",
        b"garbage",
        b"<-1|1|d>a",
    ],
)
def test_malformed_payloads_raise(payload: bytes) -> None:
    with pytest.raises(MalformedPrintError):
        decode_records(payload)


def test_record_literal_must_match_length() -> None:
    with pytest.raises(ValidationError):
        PrintRecord(offset=0, length=2, orientation=Orientation.FORWARD, literal=b"abc")


def test_record_start_positions() -> None:
    forward = PrintRecord(offset=3, length=1, orientation=Orientation.FORWARD, literal=b"x")
    reverse = PrintRecord(offset=3, length=1, orientation=Orientation.REVERSE, literal=b"x")

    assert forward.start(10) == 3
    assert reverse.start(10) == 7
    assert PrintRecord(offset=0, length=1, orientation=Orientation.FORWARD, literal=b"x").is_header
    assert not reverse.is_header
