"""Persistence for per-format consensus buffers."""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from printrack.errors import NotLearnedError, StoreError

from .models import ConsensusBuffer, ConsensusEntry, ConsensusMeta, Orientation

LOGGER = logging.getLogger(__name__)

DEFAULT_LEARNS_DIRNAME = "learns"

_DATA_SUFFIX = {Orientation.FORWARD: ".learn1", Orientation.REVERSE: ".learn2"}
_MASK_SUFFIX = {Orientation.FORWARD: ".mask1", Orientation.REVERSE: ".mask2"}
_META_SUFFIX = ".json"
_LEGACY_WILDCARD = 0x20


class ConsensusStore(ABC):
    """Key-value store of consensus entries keyed by format name."""

    @abstractmethod
    def exists(self, format_name: str) -> bool:
        """Return True when both buffers are stored for ``format_name``."""

    @abstractmethod
    def load(self, format_name: str) -> ConsensusEntry:
        """Return the stored entry.

        Raises:
            NotLearnedError: If the format has not been learned.
        """

    @abstractmethod
    def save(self, entry: ConsensusEntry) -> None:
        """Commit both buffers and the metadata of ``entry`` together."""

    @abstractmethod
    def formats(self) -> list[str]:
        """Return learned format names in ascending order."""

    @abstractmethod
    def delete(self, format_name: str) -> bool:
        """Remove a format, returning True when something was deleted."""


class MemoryConsensusStore(ConsensusStore):
    """In-process store used by tests and embedding callers."""

    def __init__(self) -> None:
        self._entries: dict[str, ConsensusEntry] = {}

    def exists(self, format_name: str) -> bool:
        return format_name in self._entries

    def load(self, format_name: str) -> ConsensusEntry:
        try:
            return self._entries[format_name].copy()
        except KeyError:
            raise NotLearnedError(f"The format {format_name!r} was not learned.") from None

    def save(self, entry: ConsensusEntry) -> None:
        entry.meta.updated_at = datetime.now(timezone.utc)
        self._entries[entry.format] = entry.copy()

    def formats(self) -> list[str]:
        return sorted(self._entries)

    def delete(self, format_name: str) -> bool:
        return self._entries.pop(format_name, None) is not None


class FileConsensusStore(ConsensusStore):
    """Store consensus buffers as flat files inside a ``learns`` directory.

    Each format owns ``<format>.learn1``/``<format>.learn2`` (cell bytes),
    ``<format>.mask1``/``<format>.mask2`` (known flags), and ``<format>.json``.
    """

    def __init__(self, directory: Path) -> None:
        """Initialize the store.

        Args:
            directory: Directory that holds the consensus files. Created on first save.
        """
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def exists(self, format_name: str) -> bool:
        return all(
            self._path(format_name, _DATA_SUFFIX[orientation]).is_file()
            for orientation in Orientation
        )

    def load(self, format_name: str) -> ConsensusEntry:
        """Load both buffers and metadata for ``format_name``.

        Learn files without a mask are read with the legacy convention where an
        ASCII space marks a WILDCARD cell.

        Raises:
            NotLearnedError: If either buffer file is missing.
            StoreError: If stored files disagree or cannot be parsed.
        """
        if not self.exists(format_name):
            raise NotLearnedError(
                f"The format {format_name!r} was not learned; no learn files in {self._directory}."
            )

        forward = self._load_buffer(format_name, Orientation.FORWARD)
        reverse = self._load_buffer(format_name, Orientation.REVERSE)
        if len(forward) != len(reverse):
            raise StoreError(
                f"Consensus buffers for {format_name!r} differ in length "
                f"({len(forward)} vs {len(reverse)})."
            )

        entry = ConsensusEntry(meta=self._load_meta(format_name), forward=forward, reverse=reverse)
        entry.refresh_meta()
        return entry

    def save(self, entry: ConsensusEntry) -> None:
        """Commit the buffers, masks, and metadata of ``entry``.

        Files are staged next to their targets and swapped in one by one. When a
        swap fails, the files already replaced get their previous content back.

        Raises:
            StoreError: If staging or committing fails.
        """
        self._directory.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        entry.meta.updated_at = now
        if entry.meta.created_at.tzinfo is None:
            entry.meta.created_at = entry.meta.created_at.replace(tzinfo=timezone.utc)
        entry.refresh_meta()

        name = entry.format
        payloads: list[tuple[Path, bytes]] = []
        for orientation in Orientation:
            buffer = entry.buffer(orientation)
            payloads.append((self._path(name, _DATA_SUFFIX[orientation]), buffer.data))
            payloads.append((self._path(name, _MASK_SUFFIX[orientation]), buffer.known))
        meta_text = json.dumps(entry.meta.model_dump(mode="json"), indent=2)
        payloads.append((self._path(name, _META_SUFFIX), meta_text.encode("utf-8")))

        staged: list[tuple[Path, Path]] = []
        previous: dict[Path, bytes | None] = {}
        try:
            for target, payload in payloads:
                previous[target] = target.read_bytes() if target.exists() else None
                temp = target.with_name(target.name + ".tmp")
                temp.write_bytes(payload)
                staged.append((temp, target))
        except OSError as exc:
            self._discard(staged)
            raise StoreError(f"Unable to write consensus for {name!r}: {exc}") from exc

        swapped: list[Path] = []
        try:
            for temp, target in staged:
                os.replace(temp, target)
                swapped.append(target)
        except OSError as exc:
            self._discard(staged)
            self._restore(swapped, previous)
            raise StoreError(f"Unable to commit consensus for {name!r}: {exc}") from exc

    def formats(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        suffix = _DATA_SUFFIX[Orientation.FORWARD]
        names = {
            path.name[: -len(suffix)]
            for path in self._directory.iterdir()
            if path.is_file() and path.name.endswith(suffix)
        }
        return sorted(name for name in names if self.exists(name))

    def delete(self, format_name: str) -> bool:
        removed = False
        suffixes = [*_DATA_SUFFIX.values(), *_MASK_SUFFIX.values(), _META_SUFFIX]
        for suffix in suffixes:
            path = self._path(format_name, suffix)
            if path.exists():
                path.unlink()
                removed = True
        return removed

    def _load_buffer(self, format_name: str, orientation: Orientation) -> ConsensusBuffer:
        data_path = self._path(format_name, _DATA_SUFFIX[orientation])
        mask_path = self._path(format_name, _MASK_SUFFIX[orientation])
        try:
            data = data_path.read_bytes()
            if mask_path.is_file():
                known = mask_path.read_bytes()
            else:
                LOGGER.warning(
                    "No mask for %s; treating spaces as wildcards.", data_path.name
                )
                known = bytes(0 if byte == _LEGACY_WILDCARD else 1 for byte in data)
        except OSError as exc:
            raise StoreError(f"Unable to read consensus for {format_name!r}: {exc}") from exc

        try:
            return ConsensusBuffer(data, known)
        except ValueError as exc:
            raise StoreError(f"Corrupt consensus for {format_name!r}: {exc}") from exc

    def _load_meta(self, format_name: str) -> ConsensusMeta:
        path = self._path(format_name, _META_SUFFIX)
        if not path.exists():
            return ConsensusMeta(format=format_name)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return ConsensusMeta.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StoreError(f"Invalid consensus metadata in {path}: {exc}") from exc

    @staticmethod
    def _discard(staged: list[tuple[Path, Path]]) -> None:
        for temp, _ in staged:
            temp.unlink(missing_ok=True)

    @staticmethod
    def _restore(swapped: list[Path], previous: dict[Path, bytes | None]) -> None:
        """Put back the files a failed commit already replaced."""
        for target in swapped:
            content = previous[target]
            try:
                if content is None:
                    target.unlink(missing_ok=True)
                else:
                    target.write_bytes(content)
            except OSError as exc:
                LOGGER.error("Unable to restore %s after a failed commit: %s", target, exc)

    def _path(self, format_name: str, suffix: str) -> Path:
        return self._directory / f"{format_name}{suffix}"


__all__ = [
    "ConsensusStore",
    "MemoryConsensusStore",
    "FileConsensusStore",
    "DEFAULT_LEARNS_DIRNAME",
]
