"""Storage for compiled print files."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path

from printrack.errors import NotLearnedError, StoreError

DEFAULT_PRINTS_DIRNAME = "prints"
PRINT_SUFFIX = ".print"


class PrintCorpus(ABC):
    """Key-value store of encoded print files keyed by format name."""

    @abstractmethod
    def formats(self) -> list[str]:
        """Return format names with a print, ascending.

        Raises:
            NotLearnedError: If the corpus location does not exist at all.
        """

    @abstractmethod
    def read(self, format_name: str) -> bytes:
        """Return the encoded print for ``format_name``.

        Raises:
            NotLearnedError: If no print exists for the format.
        """

    @abstractmethod
    def write(self, format_name: str, payload: bytes) -> None:
        """Replace the print for ``format_name``."""

    @abstractmethod
    def delete(self, format_name: str) -> bool:
        """Remove a print, returning True when one existed."""

    def exists(self, format_name: str) -> bool:
        try:
            return format_name in self.formats()
        except NotLearnedError:
            return False


class MemoryPrintCorpus(PrintCorpus):
    """In-process corpus used by tests and embedding callers."""

    def __init__(self, prints: dict[str, bytes] | None = None) -> None:
        self._prints: dict[str, bytes] = dict(prints or {})

    def formats(self) -> list[str]:
        return sorted(self._prints)

    def read(self, format_name: str) -> bytes:
        try:
            return self._prints[format_name]
        except KeyError:
            raise NotLearnedError(f"No print exists for {format_name!r}.") from None

    def write(self, format_name: str, payload: bytes) -> None:
        self._prints[format_name] = bytes(payload)

    def delete(self, format_name: str) -> bool:
        return self._prints.pop(format_name, None) is not None


class FilePrintCorpus(PrintCorpus):
    """Print files stored as ``<format>.print`` inside a ``prints`` directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def formats(self) -> list[str]:
        if not self._directory.is_dir():
            raise NotLearnedError(
                f"The prints folder {self._directory} does not exist; "
                "print files are needed to identify a file format."
            )
        return sorted(
            path.name[: -len(PRINT_SUFFIX)]
            for path in self._directory.iterdir()
            if path.is_file() and path.name.endswith(PRINT_SUFFIX)
        )

    def read(self, format_name: str) -> bytes:
        path = self._path(format_name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotLearnedError(f"No print exists for {format_name!r} at {path}.") from None
        except OSError as exc:
            raise StoreError(f"Unable to read {path}: {exc}") from exc

    def write(self, format_name: str, payload: bytes) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        target = self._path(format_name)
        temp = target.with_name(target.name + ".tmp")
        try:
            temp.write_bytes(payload)
            os.replace(temp, target)
        except OSError as exc:
            temp.unlink(missing_ok=True)
            raise StoreError(f"Unable to write {target}: {exc}") from exc

    def delete(self, format_name: str) -> bool:
        path = self._path(format_name)
        if not path.exists():
            return False
        path.unlink()
        return True

    def _path(self, format_name: str) -> Path:
        return self._directory / f"{format_name}{PRINT_SUFFIX}"


__all__ = [
    "PrintCorpus",
    "MemoryPrintCorpus",
    "FilePrintCorpus",
    "DEFAULT_PRINTS_DIRNAME",
    "PRINT_SUFFIX",
]
