"""Learn, compile, and identify against on-disk stores."""

from __future__ import annotations

from pathlib import Path

from printrack.consensus import Learner
from printrack.identify import Matcher
from printrack.prints import PrintCompiler, decode_records
from printrack.workspace import Workspace

BASE = b"0123456789ABCDEFGHIJ"


def _variant(marker: bytes) -> bytes:
    return BASE[:10] + marker + BASE[11:]


def test_samples_differing_at_one_offset_identify_a_third_variant(tmp_path: Path) -> None:
    workspace = Workspace(tmp_path / "store")
    samples = tmp_path / "samples"
    samples.mkdir()
    (samples / "one.abc").write_bytes(_variant(b"X"))
    (samples / "two.abc").write_bytes(_variant(b"#"))
    (samples / "mystery").write_bytes(_variant(b"@"))
    (samples / "other.xyz").write_bytes(b"completely different")

    learner = Learner(workspace.consensus)
    learner.learn("abc", samples / "one.abc")
    learner.learn("abc", samples / "two.abc")
    learner.learn("xyz", samples / "other.xyz")
    compiler = PrintCompiler(workspace.consensus, workspace.corpus)
    compiler.compile("abc")
    compiler.compile("xyz")

    records = decode_records(workspace.corpus.read("abc"))
    assert [(r.offset, r.length, r.orientation.value) for r in records] == [
        (0, 10, "d"),
        (11, 9, "d"),
        (9, 9, "i"),
        (20, 10, "i"),
    ]

    result = Matcher(workspace.corpus).identify(samples / "mystery")

    assert [answer.format for answer in result.answers] == ["abc"]
    best = result.best
    assert best is not None
    assert best.percent == 100
    assert best.header_matched is True
    assert best.weight == 100 * 4 * 10
    assert result.errors == []


def test_identify_prefers_header_match(tmp_path: Path) -> None:
    workspace = Workspace(tmp_path / "store")
    samples = tmp_path / "samples"
    samples.mkdir()
    (samples / "a.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 8 + b"IEND")
    (samples / "b.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x11" * 12 + b"IEND")
    (samples / "a.log").write_bytes(b"some text IEND")
    (samples / "b.log").write_bytes(b"more lines IEND")
    (samples / "candidate").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x22" * 3 + b" IEND")

    learner = Learner(workspace.consensus)
    for name in ("a.png", "b.png"):
        learner.learn("png", samples / name)
    for name in ("a.log", "b.log"):
        learner.learn("log", samples / name)
    PrintCompiler(workspace.consensus, workspace.corpus).compile_all()

    result = Matcher(workspace.corpus).identify(samples / "candidate")

    assert [answer.format for answer in result.answers] == ["png", "log"]
    assert result.answers[0].header_matched is True
    assert result.answers[1].header_matched is False
