"""Tests for immutable messages and their builders."""

from datetime import datetime, timezone
from urllib.parse import urlsplit

import pytest

from cecanon.attributes import Prefix
from cecanon.message import CloudEventMessageBuilder, Message, MessageBuilder, MessageHeaders
from cecanon.mimetype import MimeType


class TestMessage:
    """Message identity and immutability."""

    def test_identity_and_timestamp_assigned(self):
        message = Message("x", {"a": 1})
        assert message.id
        assert isinstance(message.timestamp, int)
        assert message.headers["a"] == 1

    def test_each_message_gets_new_id(self):
        assert Message("x").id != Message("x").id

    def test_identity_header_cannot_be_supplied(self):
        message = Message("x", {MessageHeaders.ID: "mine"})
        assert message.id != "mine"

    def test_headers_are_read_only(self):
        message = Message("x", {"a": 1})
        with pytest.raises(TypeError):
            message.headers["a"] = 2

    def test_copy_headers_is_independent(self):
        message = Message("x", {"a": 1})
        headers = message.copy_headers()
        headers["a"] = 2
        headers["b"] = 3
        assert message.headers["a"] == 1
        assert "b" not in message.headers
        assert headers[MessageHeaders.ID] == message.id

    def test_payload_required(self):
        with pytest.raises(ValueError, match="payload"):
            Message(None)


class TestMessageBuilder:
    """Copy-then-mutate builder."""

    def test_from_message_copies_headers(self):
        original = MessageBuilder.with_payload("x").set_header("a", 1).build()
        copy = MessageBuilder.from_message(original).set_header("b", 2).build()
        assert copy.payload == "x"
        assert copy.headers["a"] == 1
        assert copy.headers["b"] == 2
        assert "b" not in original.headers

    def test_from_message_keeps_timestamp_new_id(self):
        original = Message("x", timestamp=123)
        copy = MessageBuilder.from_message(original).build()
        assert copy.timestamp == 123
        assert copy.id != original.id

    def test_none_removes_header(self):
        message = MessageBuilder(b"", {"a": 1}).set_header("a", None).build()
        assert "a" not in message.headers

    def test_set_header_if_absent(self):
        message = (
            MessageBuilder.with_payload("x")
            .set_header("a", 1)
            .set_header_if_absent("a", 2)
            .set_header_if_absent("b", 3)
            .build()
        )
        assert message.headers["a"] == 1
        assert message.headers["b"] == 3

    def test_copy_headers_overrides(self):
        message = MessageBuilder(b"", {"a": 1}).copy_headers({"a": 2, "c": 4}).remove_header("c").build()
        assert message.headers["a"] == 2
        assert "c" not in message.headers


class TestCloudEventMessageBuilder:
    """Binary-mode CloudEvent construction."""

    def test_defaults(self):
        message = CloudEventMessageBuilder.with_data({"k": "v"}).build()
        assert message.headers["ce-specversion"] == "1.0"
        assert message.headers["ce-id"]
        assert message.headers["ce-source"] == "urn:cecanon"
        assert message.headers["ce-type"] == "dict"

    def test_explicit_attributes(self):
        when = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        message = (
            CloudEventMessageBuilder.with_data("hi")
            .set_id("1")
            .set_source(urlsplit("https://example.com/a"))
            .set_type("t")
            .set_spec_version("0.3")
            .set_data_content_type(MimeType.parse("text/plain"))
            .set_data_schema("https://example.com/schema")
            .set_subject("s")
            .set_time(when)
            .build()
        )
        assert message.headers["ce-id"] == "1"
        assert message.headers["ce-source"] == "https://example.com/a"
        assert message.headers["ce-specversion"] == "0.3"
        assert message.headers["ce-datacontenttype"] == "text/plain"
        assert message.headers["ce-dataschema"] == "https://example.com/schema"
        assert message.headers["ce-subject"] == "s"
        assert message.headers["ce-time"] == "2020-01-02T03:04:05+00:00"

    @pytest.mark.parametrize("prefix", [Prefix.KAFKA, Prefix.AMQP])
    def test_transport_prefix(self, prefix):
        message = (
            CloudEventMessageBuilder.with_data("hi")
            .set_id("1")
            .set_header("x-other", "kept")
            .build(prefix=prefix)
        )
        assert message.headers[prefix.key("id")] == "1"
        assert message.headers["x-other"] == "kept"
        assert not any(k.startswith("ce-") for k in message.headers)

    def test_no_prefix_rejected(self):
        with pytest.raises(ValueError, match="prefix"):
            CloudEventMessageBuilder.with_data("hi").build(prefix=Prefix.NONE)
