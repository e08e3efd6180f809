"""Request body encoding: text, raw bytes, URL-encoded forms and multipart form data."""

from __future__ import annotations

from .datatypes import BodyDescriptor, EncoderConfig, FormField
from .encoder import FORM_CONTENT_TYPE, BodyEncoder, encode_body
from .entity import BodyRoute, BytesEntity, EmptyEntity, Entity, MultipartEntity
from .errors import BodyError, ConfigurationError, EncodingError
from .modes import MultipartMode
from .parts import BodyPart, BytesValue, FileValue, PartKind, StreamValue, TextValue
from .resolver import resolve_field

__all__ = [
    "BodyDescriptor",
    "BodyEncoder",
    "BodyError",
    "BodyPart",
    "BodyRoute",
    "BytesEntity",
    "BytesValue",
    "ConfigurationError",
    "EmptyEntity",
    "EncoderConfig",
    "EncodingError",
    "Entity",
    "FORM_CONTENT_TYPE",
    "FileValue",
    "FormField",
    "MultipartEntity",
    "MultipartMode",
    "PartKind",
    "StreamValue",
    "TextValue",
    "encode_body",
    "resolve_field",
]
