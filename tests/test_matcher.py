"""Matcher and scoring tests."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from printrack.errors import EmptyCorpusError, NotFoundError, NotLearnedError
from printrack.identify import Guess, Matcher, RankedAnswer, rank_guesses
from printrack.prints import FilePrintCorpus, MemoryPrintCorpus

FOUR_RECORDS = b"<0|3|d>ABC<4|3|d>EFG<4|3|i>EFG<8|3|i>ABC"


def _candidate(tmp_path: Path, data: bytes, name: str = "unknown") -> Path:
    path = tmp_path / name
    path.write_bytes(data)
    return path


def test_full_match_scores_with_header_bonus(tmp_path: Path) -> None:
    matcher = Matcher(MemoryPrintCorpus({"x": FOUR_RECORDS}))

    result = matcher.identify(_candidate(tmp_path, b"ABCxEFGy"))

    assert len(result.answers) == 1
    answer = result.answers[0]
    assert answer.format == "x"
    assert answer.percent == 100
    assert answer.header_matched is True
    assert answer.matched_records == 4
    assert answer.weight == 4000


def test_prints_without_records_are_not_ranked(tmp_path: Path) -> None:
    matcher = Matcher(MemoryPrintCorpus({"empty": b"", "x": FOUR_RECORDS}))

    result = matcher.identify(_candidate(tmp_path, b"ABCxEFGy"))

    assert [answer.format for answer in result.answers] == ["x"]
    assert [(guess.format, guess.total_records) for guess in result.guesses] == [
        ("empty", 0),
        ("x", 4),
    ]


def test_records_outside_the_candidate_are_misses(tmp_path: Path) -> None:
    matcher = Matcher(MemoryPrintCorpus({"x": FOUR_RECORDS}))

    result = matcher.identify(_candidate(tmp_path, b"AB"))

    assert result.answers == []
    assert result.guesses[0].total_records == 4
    assert result.guesses[0].matched_records == 0


def test_partial_match_uses_integer_percent(tmp_path: Path) -> None:
    matcher = Matcher(MemoryPrintCorpus({"x": b"<0|1|d>A<1|1|d>B<2|1|d>Q"}))

    answer = matcher.identify(_candidate(tmp_path, b"ABC")).answers[0]

    assert answer.percent == 66
    assert answer.header_matched is True
    assert answer.weight == 66 * 2 * 10


def test_reverse_record_at_file_start_is_not_a_header(tmp_path: Path) -> None:
    matcher = Matcher(MemoryPrintCorpus({"x": b"<3|3|i>ABC"}))

    answer = matcher.identify(_candidate(tmp_path, b"ABC")).answers[0]

    assert answer.percent == 100
    assert answer.header_matched is False
    assert answer.weight == 100


def test_ranking_orders_by_weight_then_format() -> None:
    guesses = [
        Guess(format="zip", total_records=2, matched_records=1),
        Guess(format="png", total_records=4, matched_records=4, header_matched=True),
        Guess(format="jar", total_records=2, matched_records=1),
        Guess(format="txt", total_records=3, matched_records=0),
    ]

    answers = rank_guesses(guesses)

    assert [answer.format for answer in answers] == ["png", "jar", "zip"]
    assert RankedAnswer.from_guess(guesses[3]) is None


def test_malformed_print_keeps_decoded_records(tmp_path: Path) -> None:
    corpus = MemoryPrintCorpus({"bad": b"<0|3|d>ABC<garbage", "x": FOUR_RECORDS})

    result = Matcher(corpus).identify(_candidate(tmp_path, b"ABCxEFGy"))

    bad = next(guess for guess in result.guesses if guess.format == "bad")
    assert (bad.total_records, bad.matched_records, bad.header_matched) == (1, 1, True)
    assert len(result.errors) == 1
    assert result.errors[0].startswith("bad:")
    assert {answer.format for answer in result.answers} == {"bad", "x"}


def test_empty_corpus_raises(tmp_path: Path) -> None:
    with pytest.raises(EmptyCorpusError):
        Matcher(MemoryPrintCorpus()).identify(_candidate(tmp_path, b"data"))


def test_missing_prints_folder_raises(tmp_path: Path) -> None:
    matcher = Matcher(FilePrintCorpus(tmp_path / "prints"))

    with pytest.raises(NotLearnedError):
        matcher.identify(_candidate(tmp_path, b"data"))


def test_missing_candidate_raises(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        Matcher(MemoryPrintCorpus({"x": FOUR_RECORDS})).identify(tmp_path / "missing")


def test_identify_stream_matches_identify(tmp_path: Path) -> None:
    matcher = Matcher(MemoryPrintCorpus({"x": FOUR_RECORDS}))

    from_stream = matcher.identify_stream(io.BytesIO(b"ABCxEFGy"))
    from_file = matcher.identify(_candidate(tmp_path, b"ABCxEFGy"))

    assert from_stream.answers == from_file.answers
    assert from_stream.size_bytes == 8


def test_parallel_scoring_matches_sequential(tmp_path: Path) -> None:
    corpus = FilePrintCorpus(tmp_path / "prints")
    corpus.write("x", FOUR_RECORDS)
    corpus.write("y", b"<0|1|d>A<1|1|d>Z")
    corpus.write("z", b"<2|2|i>Gy")
    candidate = _candidate(tmp_path, b"ABCxEFGy")

    sequential = Matcher(corpus).identify(candidate)
    parallel = Matcher(corpus, workers=3).identify(candidate)

    assert parallel.answers == sequential.answers
    assert [answer.format for answer in parallel.answers] == ["x", "y", "z"]
    assert parallel.top(1) == (parallel.answers[:1], 2)


class _VanishingCorpus(MemoryPrintCorpus):
    """Lists a print that is gone by the time it is read."""

    def formats(self) -> list[str]:
        return sorted([*super().formats(), "gone"])


def test_unreadable_print_is_reported_not_raised(tmp_path: Path) -> None:
    matcher = Matcher(_VanishingCorpus({"x": FOUR_RECORDS}))

    result = matcher.identify(_candidate(tmp_path, b"ABCxEFGy"))

    assert [answer.format for answer in result.answers] == ["x"]
    assert len(result.errors) == 1
    assert result.errors[0].startswith("gone: ")
    gone = next(guess for guess in result.guesses if guess.format == "gone")
    assert gone.total_records == 0
