"""
Payload conversion for messages.

``PayloadConverter`` is the contract the canonicalizer relies on to read a
structured-mode body. ``JsonPayloadConverter`` is the reference
implementation for ``application/json`` and every ``+json`` media type.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Optional, Protocol, runtime_checkable

from cecanon.message import Message
from cecanon.mimetype import APPLICATION_JSON, MimeType, get_content_type_resolver


class MessageConversionError(ValueError):
    """Raised when a payload can't be converted to or from the requested form."""


@runtime_checkable
class PayloadConverter(Protocol):
    """
    Converts a message body into a requested structural shape.

    Implementations decide how to read the payload from the media type
    declared on the message and must raise (not return ``None``) when they
    can't.
    """

    def from_message(self, message: Message, target_type: type) -> Any:
        ...


class JsonPayloadConverter:
    """
    JSON payload converter.

    Reads ``bytes``, ``bytearray`` and ``str`` payloads with :func:`json.loads`;
    payloads that are already mappings are returned as a shallow ``dict``
    copy. A message without a content type is read as JSON.
    """

    supported_media_types = (APPLICATION_JSON, MimeType.parse("application/*+json"))

    def __init__(self, *, encoding: str = "utf-8"):
        self.encoding = encoding

    def supports(self, mime_type: Optional[MimeType]) -> bool:
        if mime_type is None:
            return True
        return any(supported.includes(mime_type) for supported in self.supported_media_types)

    def from_message(self, message: Message, target_type: type = dict) -> Any:
        mime_type = get_content_type_resolver().resolve(message.headers)
        if not self.supports(mime_type):
            raise MessageConversionError(
                f"Can't read {target_type.__name__} from content type {mime_type}"
            )

        payload = message.payload
        if isinstance(payload, Mapping):
            value: Any = dict(payload)
        elif isinstance(payload, (bytes, bytearray, str)):
            value = self._decode(payload, (mime_type and mime_type.charset) or self.encoding)
        else:
            raise MessageConversionError(
                f"Unsupported payload type {type(payload).__name__} for JSON conversion"
            )

        if target_type is not object and not isinstance(value, target_type):
            raise MessageConversionError(
                f"JSON payload is a {type(value).__name__}, expected {target_type.__name__}"
            )
        return value

    def to_payload(self, value: Any, mime_type: Optional[MimeType] = None) -> bytes:
        if not self.supports(mime_type):
            raise MessageConversionError(f"Can't write JSON as content type {mime_type}")
        try:
            return json.dumps(value, separators=(",", ":"), default=str).encode(self.encoding)
        except (TypeError, ValueError) as exc:
            raise MessageConversionError(f"Payload is not JSON serializable: {exc}") from exc

    @staticmethod
    def _decode(payload: bytes | bytearray | str, encoding: str) -> Any:
        try:
            text = payload if isinstance(payload, str) else bytes(payload).decode(encoding)
            return json.loads(text)
        except (UnicodeDecodeError, LookupError) as exc:
            raise MessageConversionError(f"Payload is not {encoding} text: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise MessageConversionError(f"Payload is not valid JSON: {exc}") from exc


__all__ = [
    "MessageConversionError",
    "PayloadConverter",
    "JsonPayloadConverter",
]
