"""Errors raised by the learning, print compilation, and identification stages."""


class PrintrackError(Exception):
    """Base exception for printrack operations."""


class NotFoundError(PrintrackError):
    """Raised when a named input file does not exist or cannot be read."""


class NoExtensionError(PrintrackError):
    """Raised when no format tag is given or none can be derived from a filename."""


class NotLearnedError(PrintrackError):
    """Raised when a format has no stored consensus or no print corpus exists."""


class EmptyCorpusError(PrintrackError):
    """Raised when identification is requested without any print files."""


class MalformedPrintError(PrintrackError):
    """Raised when a print file does not follow the record wire format."""


class StoreError(PrintrackError):
    """Raised when persisted consensus data is inconsistent or unreadable."""


__all__ = [
    "PrintrackError",
    "NotFoundError",
    "NoExtensionError",
    "NotLearnedError",
    "EmptyCorpusError",
    "MalformedPrintError",
    "StoreError",
]
