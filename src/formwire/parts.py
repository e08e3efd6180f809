"""Part payload variants and the ``BodyPart`` record."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Optional, Union

__all__ = [
    "BodyPart",
    "BytesValue",
    "FileValue",
    "PartKind",
    "PartValue",
    "StreamValue",
    "TextValue",
]


class PartKind(str, Enum):
    """Runtime classification of a part payload."""

    TEXT = "text"
    BYTES = "bytes"
    FILE = "file"
    STREAM = "stream"


@dataclass(frozen=True, slots=True)
class TextValue:
    """A character payload, encoded with the body charset when written."""

    text: str

    kind = PartKind.TEXT


@dataclass(frozen=True, slots=True)
class BytesValue:
    """An in-memory byte payload written verbatim."""

    data: bytes

    kind = PartKind.BYTES


@dataclass(frozen=True, slots=True)
class FileValue:
    """A filesystem path opened and streamed when the body is serialized."""

    path: Path

    kind = PartKind.FILE


@dataclass(frozen=True, slots=True, eq=False)
class StreamValue:
    """A readable stream consumed exactly once, then closed."""

    source: IO[bytes]

    kind = PartKind.STREAM


PartValue = Union[TextValue, BytesValue, FileValue, StreamValue]

_FILE_LIKE_KINDS = frozenset({PartKind.BYTES, PartKind.FILE, PartKind.STREAM})


@dataclass(frozen=True)
class BodyPart:
    """One named field of a body, or the single payload of a unified body."""

    name: Optional[str]
    value: PartValue
    content_type: Optional[str] = None
    file_name: Optional[str] = None

    @property
    def kind(self) -> PartKind:
        return self.value.kind

    @property
    def is_file(self) -> bool:
        """``True`` when the part is file-backed and carries a file name."""

        return self.kind in _FILE_LIKE_KINDS and bool(self.file_name)

    def describe(self) -> str:
        """Short human-readable label used in logs and the CLI summary."""

        label = self.name if self.name is not None else "<body>"
        if self.file_name:
            return f"{label} ({self.kind.value}: {self.file_name})"
        return f"{label} ({self.kind.value})"
