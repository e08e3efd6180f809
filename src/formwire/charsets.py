"""Charset resolution helpers shared by descriptors and encoders."""

from __future__ import annotations

import codecs
from typing import Final

from .errors import ConfigurationError

DEFAULT_CHARSET: Final[str] = "UTF-8"

__all__ = ["DEFAULT_CHARSET", "canonical_charset", "resolve_charset"]


def canonical_charset(name: str) -> str:
    """
    Return the display form of *name* after checking Python knows the codec.

    The display form keeps the caller's spelling (upper-cased) so that
    ``US-ASCII`` stays ``US-ASCII`` in ``Content-Type`` parameters instead of
    turning into Python's internal ``ascii`` codec name.

    Raises:
        ConfigurationError: If *name* is blank or not a known codec.
    """

    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("charset must be a non-empty string")
    cleaned = name.strip()
    try:
        codecs.lookup(cleaned)
    except LookupError as exc:
        raise ConfigurationError(f"Unknown charset: {cleaned!r}") from exc
    return cleaned.upper()


def resolve_charset(charset: str | None, default: str = DEFAULT_CHARSET) -> str:
    """Return *charset* when set, otherwise *default*; both are validated."""

    if charset is None:
        return canonical_charset(default)
    return canonical_charset(charset)
