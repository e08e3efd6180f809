"""Header rendering strategies for the two multipart modes."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from .errors import ConfigurationError

__all__ = [
    "BrowserCompatibleHeaders",
    "HeaderStrategy",
    "MultipartMode",
    "StrictHeaders",
    "coerce_mode",
    "strategy_for",
]

logger = logging.getLogger(__name__)

STRICT_PLACEHOLDER = "?"


class MultipartMode(str, Enum):
    """How multipart section headers treat characters outside US-ASCII."""

    BROWSER_COMPATIBLE = "browser_compatible"
    STRICT = "strict"


class HeaderStrategy(Protocol):
    """Renders a single header value before it is written to the wire."""

    mode: MultipartMode

    def render_header_value(self, value: str) -> str:
        ...


class BrowserCompatibleHeaders:
    """Keep header values verbatim; the header block is written in the body charset."""

    mode = MultipartMode.BROWSER_COMPATIBLE

    def render_header_value(self, value: str) -> str:
        return value


class StrictHeaders:
    """Substitute every non-ASCII code point with ``?`` for legacy servers."""

    mode = MultipartMode.STRICT

    def render_header_value(self, value: str) -> str:
        if value.isascii():
            return value
        rendered = "".join(ch if ch.isascii() else STRICT_PLACEHOLDER for ch in value)
        logger.warning("Strict multipart mode replaced non-ASCII header value %r with %r", value, rendered)
        return rendered


_STRATEGIES: dict[MultipartMode, HeaderStrategy] = {
    MultipartMode.BROWSER_COMPATIBLE: BrowserCompatibleHeaders(),
    MultipartMode.STRICT: StrictHeaders(),
}


def coerce_mode(mode: MultipartMode | str) -> MultipartMode:
    """Return *mode* as a :class:`MultipartMode`, accepting member names or values."""

    if isinstance(mode, MultipartMode):
        return mode
    normalized = str(mode).strip().lower().replace("-", "_")
    for member in MultipartMode:
        if normalized in (member.value, member.name.lower()):
            return member
    raise ConfigurationError(f"Unknown multipart mode: {mode!r}")


def strategy_for(mode: MultipartMode | str) -> HeaderStrategy:
    """Return the header strategy that implements *mode*."""

    return _STRATEGIES[coerce_mode(mode)]
