"""Immutable descriptions of request bodies before wire encoding."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple, Union

from .charsets import canonical_charset
from .errors import ConfigurationError
from .modes import MultipartMode, coerce_mode
from .parts import BodyPart, BytesValue, PartKind, TextValue
from .resolver import resolve_field, resolve_fields

__all__ = ["BodyDescriptor", "EncoderConfig", "FormField"]


@dataclass
class EncoderConfig:
    """Defaults applied by :class:`~formwire.encoder.BodyEncoder`."""

    default_charset: str = "UTF-8"
    default_mode: MultipartMode = MultipartMode.BROWSER_COMPATIBLE
    chunk_size: int = 65536
    text_content_type: str = "text/plain"
    binary_content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class FormField:
    """A form field with optional explicit content type and file name."""

    name: str
    value: Any
    content_type: Optional[str] = None
    file_name: Optional[str] = None


def _clean_charset(charset: Optional[str]) -> Optional[str]:
    return None if charset is None else canonical_charset(charset)


@dataclass(frozen=True)
class BodyDescriptor:
    """
    What the caller asked to send.

    A unified body carries one text or byte payload in ``uni_part``; a
    multipart body carries ordered ``multi_parts`` (repeated names allowed).
    ``charset`` and ``mode`` of ``None`` defer to the encoder defaults.
    Descriptors are never mutated; the ``with_*`` helpers return new
    instances, so charset and mode may be set before or after the fields.
    """

    is_multipart: bool
    uni_part: Optional[BodyPart] = None
    multi_parts: Tuple[BodyPart, ...] = ()
    charset: Optional[str] = None
    mode: Optional[MultipartMode] = None

    def __post_init__(self) -> None:
        if self.is_multipart:
            if self.uni_part is not None:
                raise ConfigurationError("A multipart body cannot also carry a unified part")
            if not isinstance(self.multi_parts, tuple):
                object.__setattr__(self, "multi_parts", tuple(self.multi_parts))
            for part in self.multi_parts:
                if not isinstance(part, BodyPart):
                    raise ConfigurationError(f"Multipart entries must be BodyPart records, got {type(part).__name__}")
                if not part.name:
                    raise ConfigurationError("Multipart entries require a field name")
        else:
            if self.uni_part is None:
                raise ConfigurationError("A unified body requires a payload part")
            if self.multi_parts:
                raise ConfigurationError("A unified body cannot carry multipart entries")
        if self.mode is not None:
            object.__setattr__(self, "mode", coerce_mode(self.mode))

    @classmethod
    def text(cls, body: Optional[str], charset: Optional[str] = None) -> "BodyDescriptor":
        """Describe a unified character body; ``None`` sends an empty string."""

        if body is not None and not isinstance(body, str):
            raise ConfigurationError(f"Text bodies must be str, got {type(body).__name__}; use raw() for bytes")
        return cls(
            is_multipart=False,
            uni_part=BodyPart(name=None, value=TextValue("" if body is None else body)),
            charset=_clean_charset(charset),
        )

    @classmethod
    def raw(cls, data: Union[bytes, bytearray, memoryview]) -> "BodyDescriptor":
        """Describe a unified byte body, sent without any charset."""

        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ConfigurationError(f"Raw bodies must be bytes, got {type(data).__name__}")
        return cls(is_multipart=False, uni_part=BodyPart(name=None, value=BytesValue(bytes(data))))

    @classmethod
    def form(
        cls,
        fields: Any = None,
        *,
        charset: Optional[str] = None,
        mode: Union[MultipartMode, str, None] = None,
    ) -> "BodyDescriptor":
        """
        Describe a multipart body from *fields*.

        *fields* may be ``None``, a mapping, or an iterable of ``(name, value)``
        pairs and :class:`FormField` objects. Values are classified and
        expanded immediately, so ``None`` values become empty text parts here.
        """

        return cls(
            is_multipart=True,
            multi_parts=resolve_fields(fields),
            charset=_clean_charset(charset),
            mode=None if mode is None else coerce_mode(mode),
        )

    @property
    def parts(self) -> Tuple[BodyPart, ...]:
        """All parts in wire order, whichever body kind this is."""

        if self.is_multipart:
            return self.multi_parts
        assert self.uni_part is not None
        return (self.uni_part,)

    @property
    def has_files(self) -> bool:
        return self.is_multipart and any(part.is_file for part in self.multi_parts)

    @property
    def has_streams(self) -> bool:
        return any(part.kind is PartKind.STREAM for part in self.parts)

    def with_field(
        self,
        name: str,
        value: Any,
        content_type: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> "BodyDescriptor":
        """Return a copy with the resolved parts of one more field appended."""

        if not self.is_multipart:
            raise ConfigurationError("Cannot add form fields to a unified body")
        added = resolve_field(name, value, content_type, file_name)
        return replace(self, multi_parts=self.multi_parts + added)

    def with_charset(self, charset: Optional[str]) -> "BodyDescriptor":
        return replace(self, charset=_clean_charset(charset))

    def with_mode(self, mode: Union[MultipartMode, str, None]) -> "BodyDescriptor":
        return replace(self, mode=None if mode is None else coerce_mode(mode))
