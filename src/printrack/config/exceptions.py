"""Configuration errors."""

from printrack.errors import PrintrackError


class ConfigError(PrintrackError):
    """Raised when the YAML configuration or its overrides fail to parse or validate."""
