"""Storage root wiring for the learn and print directories."""

from __future__ import annotations

from pathlib import Path

from printrack.config.models import PrintrackConfig
from printrack.consensus.store import DEFAULT_LEARNS_DIRNAME, FileConsensusStore
from printrack.prints.corpus import DEFAULT_PRINTS_DIRNAME, FilePrintCorpus

LOG_FILENAME = "printrack.log"


class Workspace:
    """Resolve the consensus store and print corpus under one storage root."""

    def __init__(
        self,
        root: Path,
        *,
        learns_dirname: str = DEFAULT_LEARNS_DIRNAME,
        prints_dirname: str = DEFAULT_PRINTS_DIRNAME,
    ) -> None:
        """Initialize the workspace.

        Args:
            root: Directory containing the learns and prints folders.
            learns_dirname: Name of the consensus folder.
            prints_dirname: Name of the prints folder.
        """
        self._root = Path(root).expanduser()
        self.consensus = FileConsensusStore(self._root / learns_dirname)
        self.corpus = FilePrintCorpus(self._root / prints_dirname)

    @classmethod
    def from_config(cls, config: PrintrackConfig) -> "Workspace":
        """Build a workspace from the resolved `storage` settings."""
        storage = config.storage
        return cls(
            Path(storage.root),
            learns_dirname=storage.learns_dirname,
            prints_dirname=storage.prints_dirname,
        )

    @property
    def root(self) -> Path:
        return self._root

    @property
    def log_path(self) -> Path:
        return self._root / LOG_FILENAME


__all__ = ["Workspace", "LOG_FILENAME"]
