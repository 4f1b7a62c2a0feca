"""Tests for the JSON payload converter."""

import pytest

from cecanon.converter import JsonPayloadConverter, MessageConversionError, PayloadConverter
from cecanon.message import MessageBuilder
from cecanon.mimetype import APPLICATION_JSON, MimeType


def _make_message(payload, content_type="application/json"):
    return MessageBuilder.with_payload(payload).set_header("contentType", content_type).build()


class TestSupports:

    @pytest.mark.parametrize("content_type", [
        "application/json",
        "application/json; charset=utf-8",
        "application/cloudevents+json",
        "application/vnd.example+json",
    ])
    def test_json_media_types(self, content_type):
        assert JsonPayloadConverter().supports(MimeType.parse(content_type))

    @pytest.mark.parametrize("content_type", ["text/plain", "text/json", "application/xml", "application/json-seq"])
    def test_other_media_types(self, content_type):
        assert not JsonPayloadConverter().supports(MimeType.parse(content_type))

    def test_missing_content_type(self):
        assert JsonPayloadConverter().supports(None)


class TestFromMessage:

    @pytest.mark.parametrize("payload", [b'{"a": 1}', bytearray(b'{"a": 1}'), '{"a": 1}', {"a": 1}])
    def test_payload_forms(self, payload):
        assert JsonPayloadConverter().from_message(_make_message(payload), dict) == {"a": 1}

    def test_suffix_media_type(self):
        message = _make_message(b'{"a": 1}', "application/vnd.example+json")
        assert JsonPayloadConverter().from_message(message, dict) == {"a": 1}

    def test_missing_content_type_read_as_json(self):
        message = MessageBuilder.with_payload(b"[1, 2]").build()
        assert JsonPayloadConverter().from_message(message, list) == [1, 2]

    def test_charset_parameter(self):
        message = _make_message('{"a": "é"}'.encode("latin-1"), "application/json; charset=latin-1")
        assert JsonPayloadConverter().from_message(message, dict) == {"a": "é"}

    def test_unsupported_media_type(self):
        with pytest.raises(MessageConversionError, match="text/plain"):
            JsonPayloadConverter().from_message(_make_message(b"{}", "text/plain"), dict)

    def test_invalid_json_chains_cause(self):
        with pytest.raises(MessageConversionError) as exc_info:
            JsonPayloadConverter().from_message(_make_message(b"{"), dict)
        assert exc_info.value.__cause__ is not None

    def test_invalid_encoding(self):
        with pytest.raises(MessageConversionError, match="utf-8"):
            JsonPayloadConverter().from_message(_make_message(b"\xff\xfe"), dict)

    def test_wrong_shape(self):
        with pytest.raises(MessageConversionError, match="expected dict"):
            JsonPayloadConverter().from_message(_make_message(b"[1]"), dict)

    def test_object_accepts_any_shape(self):
        assert JsonPayloadConverter().from_message(_make_message(b"3"), object) == 3

    def test_unsupported_payload_type(self):
        with pytest.raises(MessageConversionError, match="int"):
            JsonPayloadConverter().from_message(_make_message(42), dict)

    def test_satisfies_protocol(self):
        assert isinstance(JsonPayloadConverter(), PayloadConverter)


class TestToPayload:

    def test_compact_json(self):
        assert JsonPayloadConverter().to_payload({"a": [1, 2]}, APPLICATION_JSON) == b'{"a":[1,2]}'

    def test_rejects_non_json_media_type(self):
        with pytest.raises(MessageConversionError):
            JsonPayloadConverter().to_payload({}, MimeType.parse("text/plain"))

    def test_circular_value(self):
        value = {}
        value["self"] = value
        with pytest.raises(MessageConversionError, match="serializable"):
            JsonPayloadConverter().to_payload(value)
