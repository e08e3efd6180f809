"""Exception hierarchy for body encoding."""

from __future__ import annotations

__all__ = ["BodyError", "ConfigurationError", "EncodingError"]


class BodyError(RuntimeError):
    """Base class for all body encoding failures."""


class ConfigurationError(BodyError, ValueError):
    """Raised when a body descriptor or one of its parts cannot be encoded as configured."""


class EncodingError(BodyError):
    """Raised when reading a file or stream source fails while serializing a body."""
