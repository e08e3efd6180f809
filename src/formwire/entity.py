"""Wire entities handed to the transport layer."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Iterator, List, Optional, Sequence

from .errors import EncodingError

__all__ = [
    "BodyRoute",
    "BytesEntity",
    "BytesSource",
    "EmptyEntity",
    "Entity",
    "FileSource",
    "MultipartEntity",
    "MultipartSection",
    "StreamSource",
    "close_quietly",
    "drain_stream",
]

logger = logging.getLogger(__name__)

CRLF = b"\r\n"

# RFC 2045 token characters that are also legal RFC 2046 boundary characters.
_TOKEN_RE = re.compile(r"[0-9A-Za-z'+_\-.]+")


class BodyRoute(str, Enum):
    """Which encoding path produced an entity."""

    EMPTY = "empty"
    TEXT = "text"
    RAW = "raw"
    FORM = "form"
    MULTIPART = "multipart"


def _boundary_param(boundary: str) -> str:
    """Return *boundary* as a header parameter value, quoted unless it is a plain token."""

    if _TOKEN_RE.fullmatch(boundary):
        return boundary
    return f'"{boundary}"'


def _read_chunks(handle: IO[bytes], chunk_size: int, charset: str) -> Iterator[bytes]:
    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            return
        if isinstance(chunk, str):
            chunk = chunk.encode(charset)
        yield bytes(chunk)


def drain_stream(source: IO[bytes], chunk_size: int = 65536, charset: str = "UTF-8") -> bytes:
    """Read *source* to the end and close it, whatever happens."""

    try:
        return b"".join(_read_chunks(source, chunk_size, charset))
    except (OSError, ValueError) as exc:
        raise EncodingError(f"Failed to read stream: {exc}") from exc
    finally:
        close_quietly(source)


def close_quietly(source: IO[bytes]) -> None:
    close = getattr(source, "close", None)
    if not callable(close):
        return
    try:
        close()
    except (OSError, ValueError) as exc:
        logger.debug("Ignoring error while closing stream: %s", exc)


class BytesSource:
    """Section body held in memory."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.length: Optional[int] = len(data)

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        if self.data:
            yield self.data

    def close(self) -> None:
        return None


class FileSource:
    """Section body read from a path each time the entity is iterated."""

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            self.length: Optional[int] = path.stat().st_size
        except OSError as exc:
            raise EncodingError(f"Cannot access file {path}: {exc}") from exc

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        """Yield exactly ``length`` bytes; a file resized since ``stat`` is an error."""

        expected = self.length or 0
        remaining = expected
        try:
            with self.path.open("rb") as handle:
                while remaining > 0:
                    chunk = handle.read(min(chunk_size, remaining))
                    if not chunk:
                        raise EncodingError(
                            f"File {self.path} shrank while being sent: "
                            f"expected {expected} bytes, got {expected - remaining}"
                        )
                    remaining -= len(chunk)
                    yield chunk
                if handle.read(1):
                    raise EncodingError(f"File {self.path} grew while being sent: expected {expected} bytes")
        except OSError as exc:
            raise EncodingError(f"Failed to read file {self.path}: {exc}") from exc

    def close(self) -> None:
        return None


class StreamSource:
    """Section body read once from a caller-supplied stream, then closed."""

    length: Optional[int] = None

    def __init__(self, stream: IO[bytes], charset: str) -> None:
        self.stream = stream
        self.charset = charset
        self.consumed = False

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        if self.consumed:
            raise EncodingError("Stream part was already consumed")
        self.consumed = True
        try:
            yield from _read_chunks(self.stream, chunk_size, self.charset)
        except (OSError, ValueError) as exc:
            raise EncodingError(f"Failed to read stream: {exc}") from exc
        finally:
            close_quietly(self.stream)

    def close(self) -> None:
        if not self.consumed:
            self.consumed = True
            close_quietly(self.stream)


@dataclass
class MultipartSection:
    """Rendered headers plus the lazily produced body of one form-data section."""

    name: str
    headers: bytes
    source: "BytesSource | FileSource | StreamSource"
    file_name: Optional[str] = None

    @property
    def length(self) -> Optional[int]:
        if self.source.length is None:
            return None
        return len(self.headers) + self.source.length


class Entity:
    """
    Base class for encoded bodies.

    Subclasses set ``content_type``, ``content_length`` (``None`` when it
    cannot be known up front) and ``charset``, and implement ``iter_bytes``.
    ``is_streaming`` marks bodies that transports should send as an iterator
    rather than materializing with ``read()``.
    """

    route: BodyRoute = BodyRoute.EMPTY
    content_type: Optional[str] = None
    content_length: Optional[int] = 0
    charset: Optional[str] = None
    is_repeatable: bool = True
    is_streaming: bool = False

    def iter_bytes(self) -> Iterator[bytes]:
        return iter(())

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_bytes()

    def read(self) -> bytes:
        """Return the whole body; an error while producing it leaves nothing behind."""

        return b"".join(self.iter_bytes())

    def close(self) -> None:
        return None

    def __enter__(self) -> "Entity":
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(route={self.route.value!r}, content_type={self.content_type!r}, "
            f"content_length={self.content_length!r})"
        )


class EmptyEntity(Entity):
    """No body at all: no ``Content-Type`` and zero length."""


class BytesEntity(Entity):
    """A fully materialized body: text, raw bytes, or a URL-encoded form."""

    def __init__(
        self,
        data: bytes,
        content_type: Optional[str],
        *,
        charset: Optional[str] = None,
        route: BodyRoute = BodyRoute.RAW,
    ) -> None:
        self.data = data
        self.content_type = content_type
        self.content_length = len(data)
        self.charset = charset
        self.route = route

    def iter_bytes(self) -> Iterator[bytes]:
        if self.data:
            yield self.data


class MultipartEntity(Entity):
    """
    A ``multipart/form-data`` body streamed section by section.

    Entities carrying stream parts are single-pass: iterating twice raises
    :class:`EncodingError`, and ``close()`` releases streams never read.
    """

    route = BodyRoute.MULTIPART
    is_streaming = True

    def __init__(
        self,
        boundary: str,
        sections: Sequence[MultipartSection],
        *,
        charset: str,
        chunk_size: int = 65536,
    ) -> None:
        self.boundary = boundary
        self.sections: List[MultipartSection] = list(sections)
        self.charset = charset
        self.chunk_size = chunk_size
        self.content_type = f"multipart/form-data; boundary={_boundary_param(boundary)}"
        self.is_repeatable = not any(isinstance(s.source, StreamSource) for s in self.sections)
        self.content_length = self._calculate_length()
        self._started = False

    def _delimiter(self) -> bytes:
        return b"--" + self.boundary.encode("ascii") + CRLF

    def _terminator(self) -> bytes:
        return b"--" + self.boundary.encode("ascii") + b"--" + CRLF

    def _calculate_length(self) -> Optional[int]:
        total = len(self._terminator())
        for section in self.sections:
            section_length = section.length
            if section_length is None:
                return None
            total += len(self._delimiter()) + section_length + len(CRLF)
        return total

    def iter_bytes(self) -> Iterator[bytes]:
        if self._started and not self.is_repeatable:
            raise EncodingError("Multipart body with stream parts can only be read once")
        self._started = True
        return self._generate()

    def _generate(self) -> Iterator[bytes]:
        delimiter = self._delimiter()
        try:
            for section in self.sections:
                yield delimiter
                yield section.headers
                yield from section.source.iter_chunks(self.chunk_size)
                yield CRLF
            yield self._terminator()
        finally:
            self.close()

    def close(self) -> None:
        for section in self.sections:
            section.source.close()
