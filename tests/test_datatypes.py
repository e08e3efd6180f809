from __future__ import annotations

import io
from pathlib import Path

import pytest

from formwire import BodyDescriptor, BodyPart, ConfigurationError, FormField, MultipartMode, TextValue


def test_text_descriptor_is_unified() -> None:
    descriptor = BodyDescriptor.text("foo", charset="us-ascii")
    assert descriptor.is_multipart is False
    assert descriptor.uni_part == BodyPart(name=None, value=TextValue("foo"))
    assert descriptor.multi_parts == ()
    assert descriptor.charset == "US-ASCII"


def test_charset_defaults_to_none_until_encoded() -> None:
    assert BodyDescriptor.text("foo").charset is None


def test_unknown_charset_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        BodyDescriptor.text("foo", charset="klingon-8")


def test_raw_descriptor_requires_bytes() -> None:
    assert BodyDescriptor.raw(bytearray(b"\x00")).uni_part.value.data == b"\x00"  # type: ignore[union-attr]
    with pytest.raises(ConfigurationError):
        BodyDescriptor.raw("text")  # type: ignore[arg-type]


def test_form_preserves_order_and_repeats() -> None:
    descriptor = BodyDescriptor.form([("a", "1"), ("b", "x"), ("a", "2")])
    assert [(p.name, p.value.text) for p in descriptor.multi_parts] == [("a", "1"), ("b", "x"), ("a", "2")]


def test_form_of_none_is_empty_form() -> None:
    descriptor = BodyDescriptor.form(None)
    assert descriptor.is_multipart
    assert descriptor.multi_parts == ()


def test_form_accepts_form_field_records(image_file: Path) -> None:
    descriptor = BodyDescriptor.form(
        [FormField("foo", "bar"), FormField("filecontents", image_file.read_bytes(), "image/jpeg", "image.jpg")]
    )
    upload = descriptor.multi_parts[1]
    assert upload.is_file
    assert upload.content_type == "image/jpeg"
    assert upload.file_name == "image.jpg"
    assert descriptor.has_files


def test_has_files_false_for_plain_fields() -> None:
    assert BodyDescriptor.form({"param1": "value1", "param2": "bye"}).has_files is False


def test_with_field_appends_without_mutating() -> None:
    original = BodyDescriptor.form([("name", "Mark")])
    extended = original.with_field("name", ["Tom", "Ann"])
    assert len(original.multi_parts) == 1
    assert [p.value.text for p in extended.multi_parts] == ["Mark", "Tom", "Ann"]


def test_with_field_rejects_unified_bodies() -> None:
    with pytest.raises(ConfigurationError):
        BodyDescriptor.text("foo").with_field("a", "b")


def test_charset_last_write_wins_in_any_order() -> None:
    charset_first = BodyDescriptor.form(charset="UTF-8").with_field("foo", "bar").with_charset("US-ASCII")
    charset_last = BodyDescriptor.form([("foo", "bar")]).with_charset("US-ASCII")
    assert charset_first == charset_last
    assert charset_last.charset == "US-ASCII"


def test_mode_accepts_names_and_values() -> None:
    assert BodyDescriptor.form(mode="STRICT").mode is MultipartMode.STRICT
    assert BodyDescriptor.form().with_mode("browser-compatible").mode is MultipartMode.BROWSER_COMPATIBLE
    with pytest.raises(ConfigurationError):
        BodyDescriptor.form(mode="lenient")


def test_descriptor_shape_invariant() -> None:
    part = BodyPart(name="a", value=TextValue("1"))
    with pytest.raises(ConfigurationError):
        BodyDescriptor(is_multipart=False)
    with pytest.raises(ConfigurationError):
        BodyDescriptor(is_multipart=True, uni_part=part)
    with pytest.raises(ConfigurationError):
        BodyDescriptor(is_multipart=False, uni_part=part, multi_parts=(part,))
    with pytest.raises(ConfigurationError):
        BodyDescriptor(is_multipart=True, multi_parts=(BodyPart(name=None, value=TextValue("x")),))


def test_has_streams_detects_stream_parts() -> None:
    descriptor = BodyDescriptor.form([("file", io.BytesIO(b"x"))])
    assert descriptor.has_streams
    assert descriptor.has_files is False


def test_descriptors_are_frozen() -> None:
    descriptor = BodyDescriptor.text("foo")
    with pytest.raises(AttributeError):
        descriptor.charset = "UTF-8"  # type: ignore[misc]


@pytest.mark.parametrize("body", [b"abc", bytearray(b"abc"), 42])
def test_text_descriptor_rejects_non_str(body: object) -> None:
    with pytest.raises(ConfigurationError, match="raw"):
        BodyDescriptor.text(body)  # type: ignore[arg-type]
