"""
Immutable messages and their builders.

A ``Message`` pairs a read-only header mapping with a payload. Every
message is stamped with its own transport identity (``id``) and creation
``timestamp`` when it is built; neither is ever copied from CloudEvent
attributes.

Headers can't be changed on an existing message. Use ``copy_headers()`` to
get a mutable working copy, or one of the builders to produce a new
message::

    message = MessageBuilder.with_payload(b"{}").set_header("contentType", "application/json").build()
    updated = MessageBuilder.from_message(message).set_header("ce-subject", "orders").build()
"""

from __future__ import annotations

import time
import uuid
from types import MappingProxyType
from typing import Any, Mapping, Optional

from cecanon.attributes import CloudEventAttributes, Prefix
from cecanon.mimetype import CONTENT_TYPE_HEADER, MimeType


class MessageHeaders:
    """Names of the headers every message carries."""

    ID = "id"
    TIMESTAMP = "timestamp"
    CONTENT_TYPE = CONTENT_TYPE_HEADER

    # Assigned by Message itself; builders never copy these through.
    READ_ONLY = (ID, TIMESTAMP)


class Message:
    """An immutable (headers, payload) pair."""

    __slots__ = ("_headers", "_payload")

    def __init__(
        self,
        payload: Any,
        headers: Optional[Mapping[str, Any]] = None,
        *,
        timestamp: Optional[int] = None,
    ):
        if payload is None:
            raise ValueError("Message payload must not be None")
        values = {k: v for k, v in (headers or {}).items() if k not in MessageHeaders.READ_ONLY}
        values[MessageHeaders.ID] = str(uuid.uuid4())
        values[MessageHeaders.TIMESTAMP] = (
            timestamp if timestamp is not None else int(time.time() * 1000)
        )
        self._headers = MappingProxyType(values)
        self._payload = payload

    @property
    def headers(self) -> Mapping[str, Any]:
        """Read-only view of the headers."""
        return self._headers

    @property
    def payload(self) -> Any:
        return self._payload

    @property
    def id(self) -> str:
        return self._headers[MessageHeaders.ID]

    @property
    def timestamp(self) -> int:
        return self._headers[MessageHeaders.TIMESTAMP]

    def copy_headers(self) -> dict[str, Any]:
        """Return a new mutable ``dict`` with all headers, identity included."""
        return dict(self._headers)

    def __repr__(self) -> str:
        return f"Message(payload={self._payload!r}, headers={dict(self._headers)!r})"


class MessageBuilder:
    """Copy-then-mutate builder producing new ``Message`` instances."""

    def __init__(self, payload: Any, headers: Optional[Mapping[str, Any]] = None):
        self._payload = payload
        self._headers: dict[str, Any] = dict(headers or {})

    @classmethod
    def with_payload(cls, payload: Any) -> MessageBuilder:
        return cls(payload)

    @classmethod
    def from_message(cls, message: Message) -> MessageBuilder:
        """Start from an existing message's payload and headers.

        The source ``timestamp`` is carried over; ``id`` is re-assigned
        on ``build()``.
        """
        return cls(message.payload, message.headers)

    def set_header(self, name: str, value: Any) -> MessageBuilder:
        if value is None:
            self._headers.pop(name, None)
        else:
            self._headers[name] = value
        return self

    def set_header_if_absent(self, name: str, value: Any) -> MessageBuilder:
        if name not in self._headers:
            self.set_header(name, value)
        return self

    def remove_header(self, name: str) -> MessageBuilder:
        self._headers.pop(name, None)
        return self

    def copy_headers(self, headers: Optional[Mapping[str, Any]]) -> MessageBuilder:
        """Add or override every entry of ``headers``."""
        for name, value in (headers or {}).items():
            self.set_header(name, value)
        return self

    def build(self) -> Message:
        timestamp = self._headers.get(MessageHeaders.TIMESTAMP)
        return Message(self._payload, self._headers, timestamp=timestamp)


class CloudEventMessageBuilder(MessageBuilder):
    """
    Builder for binary-mode CloudEvent messages.

    Attributes are collected under the canonical ``ce-`` prefix and
    re-prefixed for the target transport when the message is built::

        message = (
            CloudEventMessageBuilder.with_data({"msg": "hi"})
            .set_source("/mycontext")
            .set_type("com.example.someevent")
            .build(prefix=Prefix.KAFKA)
        )
        # headers: ce_id, ce_specversion, ce_source, ce_type, ...
    """

    @classmethod
    def with_data(cls, data: Any) -> CloudEventMessageBuilder:
        return cls(data)

    def set_id(self, value: str) -> CloudEventMessageBuilder:
        return self.set_header(CloudEventAttributes.ID, value)

    def set_source(self, value: Any) -> CloudEventMessageBuilder:
        return self.set_header(CloudEventAttributes.SOURCE, _as_text(value))

    def set_spec_version(self, value: str) -> CloudEventMessageBuilder:
        return self.set_header(CloudEventAttributes.SPECVERSION, value)

    def set_type(self, value: str) -> CloudEventMessageBuilder:
        return self.set_header(CloudEventAttributes.TYPE, value)

    def set_data_content_type(self, value: Any) -> CloudEventMessageBuilder:
        return self.set_header(CloudEventAttributes.DATACONTENTTYPE, _as_text(value))

    def set_data_schema(self, value: Any) -> CloudEventMessageBuilder:
        return self.set_header(CloudEventAttributes.DATASCHEMA, _as_text(value))

    def set_subject(self, value: str) -> CloudEventMessageBuilder:
        return self.set_header(CloudEventAttributes.SUBJECT, value)

    def set_time(self, value: Any) -> CloudEventMessageBuilder:
        if hasattr(value, "isoformat"):
            value = value.isoformat()
        return self.set_header(CloudEventAttributes.TIME, value)

    def build(self, prefix: Prefix = Prefix.CANONICAL) -> Message:
        if prefix is Prefix.NONE:
            raise ValueError("Binary-mode CloudEvents need a transport prefix")

        self.set_header_if_absent(CloudEventAttributes.ID, str(uuid.uuid4()))
        self.set_header_if_absent(
            CloudEventAttributes.SPECVERSION, CloudEventAttributes.SPECVERSION_1_0
        )
        self.set_header_if_absent(CloudEventAttributes.SOURCE, CloudEventAttributes.DEFAULT_SOURCE)
        self.set_header_if_absent(CloudEventAttributes.TYPE, type(self._payload).__name__)

        headers: dict[str, Any] = {}
        canonical = Prefix.CANONICAL.value
        for name, value in self._headers.items():
            if name.startswith(canonical):
                name = prefix.key(name[len(canonical):])
            headers[name] = value

        timestamp = headers.get(MessageHeaders.TIMESTAMP)
        return Message(self._payload, headers, timestamp=timestamp)


def _as_text(value: Any) -> Any:
    """URIs and media types are stored in their string form."""
    if isinstance(value, MimeType):
        return str(value)
    if hasattr(value, "geturl"):
        return value.geturl()
    return value


__all__ = [
    "MessageHeaders",
    "Message",
    "MessageBuilder",
    "CloudEventMessageBuilder",
]
