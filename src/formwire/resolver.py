"""Classify raw field values into body parts.

``resolve_field`` is the single entry point: it accepts whatever the caller
passed for a form field and returns one or more :class:`~formwire.parts.BodyPart`
records. Collections expand into repeated parts that share the field name, in
declared order, which is how ``name=Mark&name=Tom`` arises from one call.

Precedence:

1. ordered collections expand recursively;
2. ``None`` becomes an empty text part;
3. path-like values become file parts named after their basename;
4. byte sequences become byte parts;
5. readable streams become stream parts;
6. mappings and sets are rejected;
7. anything else becomes a text part holding ``str(value)``.

Byte and stream values without a file name stay plain text fields: they are
not file parts and receive no default content type.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping, Sequence, Set
from pathlib import Path
from typing import Any, Final, Optional, Tuple

from .errors import ConfigurationError
from .parts import BodyPart, BytesValue, FileValue, PartValue, StreamValue, TextValue

DEFAULT_BINARY_CONTENT_TYPE: Final[str] = "application/octet-stream"

__all__ = ["DEFAULT_BINARY_CONTENT_TYPE", "resolve_field", "resolve_fields"]


def _is_stream(value: Any) -> bool:
    return callable(getattr(value, "read", None))


def _is_collection(value: Any) -> bool:
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return False
    if _is_stream(value):
        return False
    if isinstance(value, Sequence):
        return True
    return isinstance(value, Iterator)


def _classify(value: Any) -> PartValue:
    if value is None:
        return TextValue("")
    if isinstance(value, os.PathLike):
        return FileValue(Path(os.fspath(value)))
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BytesValue(bytes(value))
    if _is_stream(value):
        return StreamValue(value)
    if isinstance(value, (Mapping, Set)):
        raise ConfigurationError(
            f"Unsupported field value of type {type(value).__name__}; "
            "pass an ordered sequence to send repeated fields"
        )
    return TextValue(str(value))


def resolve_field(
    name: str,
    value: Any,
    content_type: Optional[str] = None,
    file_name: Optional[str] = None,
) -> Tuple[BodyPart, ...]:
    """
    Resolve one logical field into its physical parts.

    Parameters:
        name (str): Form field name, shared by every expanded part.
        value (Any): Raw value; see the module docstring for accepted shapes.
        content_type (str | None): Explicit MIME type applied to every part.
        file_name (str | None): Explicit file name; overrides a path's basename.

    Returns:
        tuple[BodyPart, ...]: One part per scalar value, in declared order.

    Raises:
        ConfigurationError: If *name* is blank or the value has no ordered form.
    """

    if not isinstance(name, str) or not name:
        raise ConfigurationError("Form fields require a non-empty string name")

    if _is_collection(value):
        parts: list[BodyPart] = []
        for element in value:
            parts.extend(resolve_field(name, element, content_type, file_name))
        return tuple(parts)

    payload = _classify(value)
    resolved_name = file_name
    if isinstance(payload, FileValue) and not resolved_name:
        resolved_name = payload.path.name

    resolved_type = content_type.strip() if content_type and content_type.strip() else None
    if resolved_type is None and resolved_name and not isinstance(payload, TextValue):
        resolved_type = DEFAULT_BINARY_CONTENT_TYPE

    if isinstance(payload, TextValue):
        resolved_name = None

    return (
        BodyPart(
            name=name,
            value=payload,
            content_type=resolved_type,
            file_name=resolved_name or None,
        ),
    )


def resolve_fields(fields: Any) -> Tuple[BodyPart, ...]:
    """
    Resolve a whole field collection in order.

    ``fields`` may be ``None`` (no fields), a mapping of names to values, or
    an iterable of ``(name, value)`` pairs and ``FormField``-like objects that
    expose ``name``/``value``/``content_type``/``file_name`` attributes.
    """

    if fields is None:
        return ()
    items = fields.items() if isinstance(fields, Mapping) else fields
    parts: list[BodyPart] = []
    for item in items:
        if isinstance(item, tuple):
            if len(item) != 2:
                raise ConfigurationError(f"Field pairs must be (name, value); got {len(item)} items")
            name, value = item
            parts.extend(resolve_field(name, value))
        else:
            parts.extend(
                resolve_field(
                    getattr(item, "name", None),
                    getattr(item, "value", None),
                    getattr(item, "content_type", None),
                    getattr(item, "file_name", None),
                )
            )
    return tuple(parts)
