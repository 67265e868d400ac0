"""Configuration management for printrack."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import PrintrackConfig
from .resolver import ENV_PREFIX, env_to_dotted, merge_layer, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.printrack/config.yaml")
_CONFIG_HEADER = (
    "# printrack configuration file\n"
    "# Edit with `printrack config edit` or `printrack config set KEY --value VALUE`.\n"
)


class ConfigManager:
    """Read and write ``config.yaml`` and resolve the effective settings."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
    ) -> PrintrackConfig:
        """Resolve the effective configuration, creating the file on first use.

        Args:
            cli_overrides: Dotted keys supplied by command line options.
            include_env: Whether ``PRINTRACK__SECTION__KEY`` variables apply.

        Returns:
            PrintrackConfig: Validated settings.

        Raises:
            ConfigError: If the file cannot be parsed or a value is invalid.
        """
        self.ensure_exists()
        return resolve_with_precedence(
            defaults=PrintrackConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=self.env_overrides() if include_env else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the mapping stored on disk, or an empty one."""
        if not self._config_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def env_overrides(self) -> dict[str, Any]:
        """Return ``PRINTRACK__`` variables as dotted keys with YAML-parsed values."""
        overrides: dict[str, Any] = {}
        for key, raw_value in self._env.items():
            dotted = env_to_dotted(key)
            if dotted is None:
                continue
            try:
                overrides[dotted] = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                overrides[dotted] = raw_value
        return overrides

    def update(self, overrides: Mapping[str, Any]) -> PrintrackConfig:
        """Merge dotted-key ``overrides`` into the file after validating the result.

        Raises:
            ConfigError: If the updated file would not validate; nothing is written then.
        """
        file_data = merge_layer(self.load_file_overrides(), overrides, source_name="file")
        config = resolve_with_precedence(defaults=PrintrackConfig(), file_overrides=file_data)
        self.save(file_data)
        return config

    def save(self, data: Mapping[str, Any]) -> None:
        """Write ``data`` to the configuration file below the generated header."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Write the default settings when no configuration file exists."""
        if not self._config_path.exists():
            self.save(PrintrackConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "PrintrackConfig",
    "resolve_with_precedence",
    "ConfigError",
]
