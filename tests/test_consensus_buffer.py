"""Unit tests for the consensus buffer cell model."""

from __future__ import annotations

import pytest

from printrack.consensus import ConsensusBuffer


def test_seeded_buffer_has_no_wildcards() -> None:
    buffer = ConsensusBuffer.from_sample(b"hello")

    assert len(buffer) == 5
    assert buffer.wildcard_count == 0
    assert list(buffer.cells()) == list(b"hello")


def test_intersect_wildcards_only_mismatching_cells() -> None:
    buffer = ConsensusBuffer.from_sample(b"abcdef")

    changed = buffer.intersect(0, b"abXdeY")

    assert changed == 2
    assert list(buffer.cells()) == [ord("a"), ord("b"), None, ord("d"), ord("e"), None]


def test_wildcard_cells_never_revert() -> None:
    buffer = ConsensusBuffer.from_sample(b"abcdef")
    buffer.intersect(0, b"abXdef")

    changed = buffer.intersect(0, b"abcdef")

    assert changed == 0
    assert buffer.cell(2) is None
    assert buffer.wildcard_count == 1


def test_space_bytes_are_ordinary_data() -> None:
    buffer = ConsensusBuffer.from_sample(b"a b")

    assert buffer.cell(1) == 0x20
    assert list(buffer.runs()) == [(0, b"a b")]


def test_intersect_at_offset_ignores_bytes_past_the_end() -> None:
    buffer = ConsensusBuffer.from_sample(b"abcd")

    changed = buffer.intersect(2, b"cZzzz")

    assert changed == 1
    assert len(buffer) == 4
    assert buffer.cell(3) is None


def test_grow_appends_wildcards_and_wildcard_from_counts_known_cells() -> None:
    buffer = ConsensusBuffer.from_sample(b"abcd")

    buffer.grow(6)
    assert len(buffer) == 6
    assert buffer.wildcard_count == 2

    assert buffer.wildcard_from(3) == 1
    assert buffer.wildcard_count == 3
    assert list(buffer.cells())[:3] == list(b"abc")


def test_runs_yield_maximal_fixed_runs() -> None:
    buffer = ConsensusBuffer.from_sample(b"abcdef")
    buffer.intersect(0, b"abXdXf")

    assert list(buffer.runs()) == [(0, b"ab"), (3, b"d"), (5, b"f")]


def test_mask_zeroes_wildcard_data() -> None:
    buffer = ConsensusBuffer(b"abc", b"\x01\x00\x01")

    assert buffer.data == b"a\x00c"
    assert buffer.known == b"\x01\x00\x01"
    assert buffer.cell(1) is None


def test_mask_length_must_match_data() -> None:
    with pytest.raises(ValueError):
        ConsensusBuffer(b"abc", b"\x01")


def test_copy_is_independent() -> None:
    buffer = ConsensusBuffer.from_sample(b"abc")
    clone = buffer.copy()

    clone.intersect(0, b"xbc")

    assert buffer.wildcard_count == 0
    assert clone.wildcard_count == 1
    assert buffer != clone
