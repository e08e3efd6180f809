from __future__ import annotations

import io
from urllib.parse import parse_qsl

import pytest

from formwire import (
    BodyDescriptor,
    BodyEncoder,
    BodyRoute,
    ConfigurationError,
    EncoderConfig,
    EncodingError,
    FORM_CONTENT_TYPE,
    encode_body,
)


class _TrackingStream(io.BytesIO):
    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class _BrokenStream:
    def __init__(self) -> None:
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        raise OSError("disk on fire")

    def close(self) -> None:
        self.closed = True


def test_no_descriptor_produces_empty_entity() -> None:
    entity = encode_body(None)
    assert entity.route is BodyRoute.EMPTY
    assert entity.content_type is None
    assert entity.content_length == 0
    assert entity.read() == b""


def test_text_body_uses_declared_charset() -> None:
    entity = encode_body(BodyDescriptor.text("foo", charset="US-ASCII"))
    assert entity.route is BodyRoute.TEXT
    assert entity.read() == b"foo"
    assert entity.content_type == "text/plain; charset=US-ASCII"
    assert entity.content_length == 3


def test_text_body_defaults_to_encoder_charset() -> None:
    entity = encode_body(BodyDescriptor.text("héllo"))
    assert entity.read() == "héllo".encode("utf-8")
    assert entity.content_type == "text/plain; charset=UTF-8"

    latin = BodyEncoder(EncoderConfig(default_charset="ISO-8859-1")).encode(BodyDescriptor.text("héllo"))
    assert latin.read() == "héllo".encode("latin-1")
    assert latin.charset == "ISO-8859-1"


def test_text_body_none_is_empty_string() -> None:
    entity = encode_body(BodyDescriptor.text(None))
    assert entity.read() == b""
    assert entity.content_type == "text/plain; charset=UTF-8"


def test_unencodable_text_body_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        encode_body(BodyDescriptor.text("こんにちは", charset="US-ASCII"))


def test_raw_body_is_sent_verbatim() -> None:
    payload = bytes(range(256))
    entity = encode_body(BodyDescriptor.raw(payload))
    assert entity.route is BodyRoute.RAW
    assert entity.read() == payload
    assert entity.content_type == "application/octet-stream"
    assert entity.charset is None


def test_configured_content_types_apply_to_unified_bodies() -> None:
    encoder = BodyEncoder(EncoderConfig(text_content_type="text/csv", binary_content_type="application/x-blob"))
    assert encoder.encode(BodyDescriptor.text("a,b")).content_type == "text/csv; charset=UTF-8"
    assert encoder.encode(BodyDescriptor.raw(b"x")).content_type == "application/x-blob"


def test_form_repeats_collection_values_in_order() -> None:
    entity = encode_body(BodyDescriptor.form({"a": [1, 2]}))
    assert entity.route is BodyRoute.FORM
    assert entity.read() == b"a=1&a=2"
    assert entity.content_type == FORM_CONTENT_TYPE
    assert entity.charset == "UTF-8"


def test_form_sends_none_as_empty_value() -> None:
    entity = encode_body(BodyDescriptor.form({"big": "bird", "charlie": 42, "gonzo": None}))
    assert entity.read() == b"big=bird&charlie=42&gonzo="


def test_empty_form_has_zero_length() -> None:
    entity = encode_body(BodyDescriptor.form(None))
    assert entity.route is BodyRoute.FORM
    assert entity.read() == b""
    assert entity.content_length == 0
    assert entity.content_type == FORM_CONTENT_TYPE


def test_form_round_trips_non_ascii_text() -> None:
    entity = encode_body(BodyDescriptor.form([("greeting", "こんにちは"), ("q", "a b&c=d")]))
    body = entity.read()
    assert body.isascii()
    assert parse_qsl(body.decode("ascii"), encoding="utf-8") == [("greeting", "こんにちは"), ("q", "a b&c=d")]


def test_form_honours_charset() -> None:
    entity = encode_body(BodyDescriptor.form([("name", "café")], charset="ISO-8859-1"))
    assert entity.read() == b"name=caf%E9"
    assert entity.charset == "ISO-8859-1"


def test_form_rejects_text_outside_charset() -> None:
    with pytest.raises(ConfigurationError):
        encode_body(BodyDescriptor.form([("greeting", "こんにちは")], charset="US-ASCII"))


def test_bytes_without_file_name_degrade_to_parameter() -> None:
    entity = encode_body(BodyDescriptor.form([("data", b"\xff\x00ok")]))
    assert entity.route is BodyRoute.FORM
    assert entity.read() == b"data=%FF%00ok"


def test_stream_without_file_name_is_drained_and_closed() -> None:
    stream = _TrackingStream(b"hello world")
    entity = encode_body(BodyDescriptor.form([("data", stream)]))
    assert entity.read() == b"data=hello+world"
    assert stream.closed
    assert stream.close_calls >= 1


def test_broken_stream_in_form_raises_encoding_error_and_closes() -> None:
    stream = _BrokenStream()
    with pytest.raises(EncodingError):
        encode_body(BodyDescriptor.form([("data", stream)]))
    assert stream.closed


def test_configuration_error_closes_pending_streams() -> None:
    stream = _TrackingStream(b"unused")
    descriptor = BodyDescriptor.form([("data", stream), ("greeting", "こんにちは")], charset="US-ASCII")
    with pytest.raises(ConfigurationError):
        encode_body(descriptor)
    assert stream.closed


def test_file_part_routes_to_multipart(text_file) -> None:
    entity = encode_body(BodyDescriptor.form([("name", "Mark"), ("file", text_file)]))
    assert entity.route is BodyRoute.MULTIPART
    assert entity.content_type.startswith("multipart/form-data; boundary=")


def test_encoder_rejects_non_descriptor() -> None:
    with pytest.raises(ConfigurationError):
        BodyEncoder().encode({"a": 1})  # type: ignore[arg-type]


def test_encoder_rejects_bad_chunk_size() -> None:
    with pytest.raises(ConfigurationError):
        BodyEncoder(EncoderConfig(chunk_size=0))


def test_encoder_is_reusable_across_descriptors() -> None:
    encoder = BodyEncoder()
    first = encoder.encode(BodyDescriptor.form({"a": "1"}))
    second = encoder.encode(BodyDescriptor.form({"b": "2"}, charset="US-ASCII"))
    assert first.read() == b"a=1"
    assert second.read() == b"b=2"
    assert first.charset == "UTF-8"
    assert second.charset == "US-ASCII"
