"""Configuration models describing printrack settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PrintrackBaseModel(BaseModel):
    """Shared configuration for printrack Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(PrintrackBaseModel):
    """Where learn and print files live.

    Attributes:
        root: Directory holding the learns and prints folders.
        learns_dirname: Folder name for consensus buffers.
        prints_dirname: Folder name for compiled prints.
    """

    root: str = "~/.printrack"
    learns_dirname: str = "learns"
    prints_dirname: str = "prints"


class LearningSettings(PrintrackBaseModel):
    """Options governing how samples are learned.

    Attributes:
        chunk_size_kb: Read size used while streaming samples.
        compile_after_learn: Whether `learn` recompiles prints for touched formats.
    """

    chunk_size_kb: int = Field(default=64, ge=1)
    compile_after_learn: bool = False


class IdentifySettings(PrintrackBaseModel):
    """Options governing identification.

    Attributes:
        top_results: Rows shown by `identify` before summarizing the rest.
        workers: Threads used to score print files; 1 scores sequentially.
    """

    top_results: int = Field(default=45, ge=0)
    workers: int = Field(default=1, ge=1)


class LoggingSettings(PrintrackBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        to_file: Whether to also write `printrack.log` under the storage root.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    to_file: bool = True
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(PrintrackBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class PrintrackConfig(PrintrackBaseModel):
    """Top-level configuration struct for printrack.

    Attributes:
        storage: Storage locations.
        learning: Learning options.
        identify: Identification options.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    storage: StorageSettings = Field(default_factory=StorageSettings)
    learning: LearningSettings = Field(default_factory=LearningSettings)
    identify: IdentifySettings = Field(default_factory=IdentifySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "PrintrackBaseModel",
    "StorageSettings",
    "LearningSettings",
    "IdentifySettings",
    "LoggingSettings",
    "CLIOptions",
    "PrintrackConfig",
]
