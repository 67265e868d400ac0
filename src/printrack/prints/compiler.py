"""Print compilation: turn a consensus into positional print records."""

from __future__ import annotations

import logging

from printrack.consensus.models import ConsensusBuffer, ConsensusEntry, Orientation
from printrack.consensus.store import ConsensusStore
from printrack.paths import require_format

from .corpus import PrintCorpus
from .models import PrintFile, PrintRecord

LOGGER = logging.getLogger(__name__)


def forward_records(buffer: ConsensusBuffer) -> list[PrintRecord]:
    """Return one FORWARD record per maximal run of fixed cells."""
    return [
        PrintRecord(
            offset=start,
            length=len(run),
            orientation=Orientation.FORWARD,
            literal=run,
        )
        for start, run in buffer.runs()
    ]


def reverse_records(buffer: ConsensusBuffer) -> list[PrintRecord]:
    """Return one REVERSE record per maximal run of fixed cells.

    A run starting at reverse index ``k`` with length ``L`` covers the file bytes
    ``[size - k - L, size - k)``, so its offset is ``k + L`` and its literal is
    the run read back into file order.
    """
    return [
        PrintRecord(
            offset=start + len(run),
            length=len(run),
            orientation=Orientation.REVERSE,
            literal=run[::-1],
        )
        for start, run in buffer.runs()
    ]


def compile_entry(entry: ConsensusEntry) -> PrintFile:
    """Compile both buffers of ``entry``: FORWARD records first, then REVERSE."""
    records = forward_records(entry.forward) + reverse_records(entry.reverse)
    return PrintFile(format=entry.format, records=records)


class PrintCompiler:
    """Compile stored consensus entries into the print corpus."""

    def __init__(self, store: ConsensusStore, corpus: PrintCorpus) -> None:
        self.store = store
        self.corpus = corpus

    def compile(self, format_name: str) -> PrintFile:
        """Compile the print for ``format_name`` and write it to the corpus.

        Raises:
            NoExtensionError: If ``format_name`` is empty.
            NotLearnedError: If the format has no stored consensus.
        """
        format_name = require_format(format_name)
        entry = self.store.load(format_name)
        print_file = compile_entry(entry)
        self.corpus.write(format_name, print_file.encode())
        LOGGER.info(
            "Compiled %s: %d forward and %d reverse records.",
            format_name,
            print_file.forward_count,
            print_file.reverse_count,
        )
        return print_file

    def compile_all(self) -> list[PrintFile]:
        """Compile every learned format."""
        return [self.compile(format_name) for format_name in self.store.formats()]


__all__ = ["PrintCompiler", "compile_entry", "forward_records", "reverse_records"]
