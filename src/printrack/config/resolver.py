"""Layering of configuration sources."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Mapping

from pydantic import ValidationError

from .exceptions import ConfigError
from .models import PrintrackConfig

ENV_PREFIX = "PRINTRACK__"


def resolve_with_precedence(
    *,
    defaults: PrintrackConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> PrintrackConfig:
    """Validate defaults < file < environment < CLI as one `PrintrackConfig`.

    Every layer may mix nested mappings with dotted keys such as
    ``storage.root``.

    Raises:
        ConfigError: If a layer is malformed or the merged values fail validation.
    """
    merged = defaults.model_dump(mode="python")
    for name, layer in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if layer:
            merged = merge_layer(merged, layer, source_name=name)

    try:
        return PrintrackConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def merge_layer(
    base: Mapping[str, Any], layer: Mapping[str, Any], *, source_name: str
) -> dict[str, Any]:
    """Return ``base`` updated with ``layer``, expanding dotted keys into sections."""
    if not isinstance(layer, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    merged = deepcopy(dict(base))
    for key, value in layer.items():
        if not isinstance(key, str) or not key.strip("."):
            raise ConfigError(f"Invalid {source_name} override key: {key!r}.")
        *sections, leaf = [segment for segment in key.split(".") if segment]
        node = merged
        for section in sections:
            child = node.setdefault(section, {})
            if not isinstance(child, dict):
                raise ConfigError(f"{source_name.capitalize()} override {key!r} is not a section.")
            node = child
        if isinstance(value, MappingABC) and isinstance(node.get(leaf), dict):
            node[leaf] = merge_layer(node[leaf], value, source_name=source_name)
        else:
            node[leaf] = deepcopy(value)
    return merged


def env_to_dotted(key: str) -> str | None:
    """Map ``PRINTRACK__SECTION__KEY`` to ``section.key``; other names map to None."""
    if not key.startswith(ENV_PREFIX):
        return None
    segments = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
    return ".".join(segments) or None


__all__ = ["resolve_with_precedence", "merge_layer", "env_to_dotted", "ENV_PREFIX"]
