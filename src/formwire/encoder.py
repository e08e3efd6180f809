"""Turn body descriptors into transport-ready entities."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode

from urllib3.fields import RequestField
from urllib3.filepost import choose_boundary

from .charsets import resolve_charset
from .datatypes import BodyDescriptor, EncoderConfig
from .entity import (
    BodyRoute,
    BytesEntity,
    BytesSource,
    EmptyEntity,
    Entity,
    FileSource,
    MultipartEntity,
    MultipartSection,
    StreamSource,
    close_quietly,
    drain_stream,
)
from .errors import BodyError, ConfigurationError
from .modes import HeaderStrategy, strategy_for
from .parts import BodyPart, BytesValue, FileValue, StreamValue, TextValue

__all__ = ["BodyEncoder", "FORM_CONTENT_TYPE", "encode_body"]

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

_PART_VALUE_TYPES = (TextValue, BytesValue, FileValue, StreamValue)

# RFC 2046 bchars; a boundary may not end with a space.
_BOUNDARY_RE = re.compile(r"[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]")


def _encode_text(text: str, charset: str, label: str) -> bytes:
    try:
        return text.encode(charset)
    except UnicodeEncodeError as exc:
        raise ConfigurationError(f"{label} cannot be represented in charset {charset}: {exc}") from exc


def _close_streams(parts: Sequence[BodyPart]) -> None:
    for part in parts:
        value = getattr(part, "value", None)
        if isinstance(value, StreamValue):
            close_quietly(value.source)


def _validate_parts(parts: Sequence[BodyPart]) -> None:
    for part in parts:
        if not isinstance(part, BodyPart):
            raise ConfigurationError(f"Expected BodyPart, got {type(part).__name__}")
        if not isinstance(part.value, _PART_VALUE_TYPES):
            raise ConfigurationError(
                f"Unrecognized value type {type(part.value).__name__} for part {part.name!r}"
            )


class BodyEncoder:
    """
    Encode :class:`BodyDescriptor` instances.

    The encoder keeps no per-call state, so one instance may serve concurrent
    requests. Every configuration problem is raised from :meth:`encode` before
    an entity exists; I/O problems with file and stream sources surface as
    :class:`~formwire.errors.EncodingError` either here (missing files) or while
    the entity is read.
    """

    def __init__(self, config: Optional[EncoderConfig] = None) -> None:
        self.config = config or EncoderConfig()
        if self.config.chunk_size < 1:
            raise ConfigurationError("chunk_size must be >= 1")

    def encode(self, descriptor: Optional[BodyDescriptor], *, boundary: Optional[str] = None) -> Entity:
        """
        Produce the wire entity for *descriptor*.

        Parameters:
            descriptor (BodyDescriptor | None): The logical body, or ``None`` for no body.
            boundary (str | None): Fixed multipart boundary; a fresh random one is
                generated per call when omitted.

        Returns:
            Entity: Empty, text/raw, URL-encoded form, or multipart entity.

        Raises:
            ConfigurationError: For unrecognized part values, unknown charsets or text
                the charset cannot represent.
            EncodingError: When a file part cannot be accessed or a stream destined
                for a URL-encoded form cannot be read.
        """

        if descriptor is None:
            logger.debug("No body configured; producing empty entity")
            return EmptyEntity()
        if not isinstance(descriptor, BodyDescriptor):
            raise ConfigurationError(f"Expected BodyDescriptor, got {type(descriptor).__name__}")

        try:
            _validate_parts(descriptor.parts)
            charset = resolve_charset(descriptor.charset, self.config.default_charset)
            if not descriptor.is_multipart:
                assert descriptor.uni_part is not None
                return self._encode_unified(descriptor.uni_part, charset)
            if descriptor.has_files:
                strategy = strategy_for(descriptor.mode or self.config.default_mode)
                return self._encode_multipart(descriptor.multi_parts, charset, strategy, boundary)
            return self._encode_form(descriptor.multi_parts, charset)
        except BodyError:
            _close_streams(descriptor.parts)
            raise

    def _encode_unified(self, part: BodyPart, charset: str) -> Entity:
        value = part.value
        if isinstance(value, TextValue):
            data = _encode_text(value.text, charset, "Body text")
            logger.debug("Encoded text body (%d bytes, charset=%s)", len(data), charset)
            return BytesEntity(
                data,
                f"{self.config.text_content_type}; charset={charset}",
                charset=charset,
                route=BodyRoute.TEXT,
            )
        if isinstance(value, BytesValue):
            logger.debug("Encoded raw body (%d bytes)", len(value.data))
            return BytesEntity(value.data, self.config.binary_content_type, route=BodyRoute.RAW)
        raise ConfigurationError(f"Unified bodies carry text or bytes, not {value.kind.value}")

    def _form_value(self, part: BodyPart, charset: str) -> Union[str, bytes]:
        value = part.value
        if isinstance(value, TextValue):
            return value.text
        if isinstance(value, BytesValue):
            return value.data
        if isinstance(value, StreamValue):
            return drain_stream(value.source, self.config.chunk_size, charset)
        if isinstance(value, FileValue):
            source = FileSource(value.path)
            return b"".join(source.iter_chunks(self.config.chunk_size))
        raise ConfigurationError(f"Unrecognized value type {type(value).__name__} for part {part.name!r}")

    def _encode_form(self, parts: Sequence[BodyPart], charset: str) -> Entity:
        pairs: List[Tuple[str, Union[str, bytes]]] = []
        try:
            for part in parts:
                assert part.name is not None
                pairs.append((part.name, self._form_value(part, charset)))
        finally:
            _close_streams(parts)
        try:
            encoded = urlencode(pairs, encoding=charset)
        except UnicodeEncodeError as exc:
            raise ConfigurationError(f"Form field cannot be represented in charset {charset}: {exc}") from exc
        data = encoded.encode("ascii")
        logger.debug("Encoded URL-encoded form with %d field(s), charset=%s", len(pairs), charset)
        return BytesEntity(data, FORM_CONTENT_TYPE, charset=charset, route=BodyRoute.FORM)

    def _render_headers(self, part: BodyPart, charset: str, strategy: HeaderStrategy) -> bytes:
        assert part.name is not None
        render = strategy.render_header_value
        field = RequestField(
            name=render(part.name),
            data=b"",
            filename=render(part.file_name) if part.file_name else None,
        )
        field.make_multipart(content_type=render(part.content_type) if part.content_type else None)
        return field.render_headers().encode(charset, errors="replace")

    def _section_source(
        self, part: BodyPart, charset: str
    ) -> Union[BytesSource, FileSource, StreamSource]:
        value = part.value
        if isinstance(value, TextValue):
            return BytesSource(_encode_text(value.text, charset, f"Field {part.name!r}"))
        if isinstance(value, BytesValue):
            return BytesSource(value.data)
        if isinstance(value, FileValue):
            return FileSource(value.path)
        if isinstance(value, StreamValue):
            return StreamSource(value.source, charset)
        raise ConfigurationError(f"Unrecognized value type {type(value).__name__} for part {part.name!r}")

    def _encode_multipart(
        self,
        parts: Sequence[BodyPart],
        charset: str,
        strategy: HeaderStrategy,
        boundary: Optional[str],
    ) -> Entity:
        token = boundary or choose_boundary()
        if not _BOUNDARY_RE.fullmatch(token):
            raise ConfigurationError(f"Invalid multipart boundary: {token!r}")
        sections: List[MultipartSection] = []
        for part in parts:
            assert part.name is not None
            sections.append(
                MultipartSection(
                    name=part.name,
                    headers=self._render_headers(part, charset, strategy),
                    source=self._section_source(part, charset),
                    file_name=part.file_name,
                )
            )
        entity = MultipartEntity(token, sections, charset=charset, chunk_size=self.config.chunk_size)
        logger.debug(
            "Encoded multipart body with %d section(s), mode=%s, length=%s",
            len(sections),
            strategy.mode.value,
            entity.content_length,
        )
        return entity


def encode_body(
    descriptor: Optional[BodyDescriptor],
    config: Optional[EncoderConfig] = None,
    *,
    boundary: Optional[str] = None,
) -> Entity:
    """Encode *descriptor* with a one-off :class:`BodyEncoder`."""

    return BodyEncoder(config).encode(descriptor, boundary=boundary)
