"""
CloudEvents Canonicalization
============================

Normalizes CloudEvent attributes carried on message headers by any
transport binding (HTTP ``ce-``, Kafka ``ce_``, AMQP ``cloudEvents:``) to
the canonical ``ce-`` form, and converts structured-mode messages
(the whole event serialized in the body) into binary-mode messages
(attributes as headers, data as body) and back.

Usage:
    from cecanon.canonical import to_canonical, get_source
    from cecanon.converter import JsonPayloadConverter

    message = to_canonical(incoming, JsonPayloadConverter())
    # -> headers: {"ce-id": ..., "ce-source": ..., ...}, payload: event data

Functions here never log above DEBUG and never wrap errors raised by the
payload converter.
"""

from __future__ import annotations

import base64
import logging
import re
from datetime import datetime
from typing import Any, Mapping, MutableMapping, Optional, Union
from urllib.parse import SplitResult, urlsplit

from cecanon.attributes import CloudEventAttributes, Prefix
from cecanon.converter import PayloadConverter
from cecanon.message import Message, MessageBuilder, MessageHeaders
from cecanon.mimetype import (
    APPLICATION_CLOUDEVENTS_JSON,
    APPLICATION_JSON,
    ContentTypeResolver,
    MimeType,
    get_content_type_resolver,
    is_structured_cloudevent,
)

logger = logging.getLogger(__name__)

HeadersOrMessage = Union[Message, Mapping[str, Any]]

DEFAULT_DATA_CONTENT_TYPE = str(APPLICATION_JSON)

# fromisoformat only takes 3 or 6 fraction digits before Python 3.11
_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d{2}:?\d{2}$|$)")


class InvalidAttributeError(ValueError):
    """Raised when a stored attribute can't be read as its declared type."""


def _headers_of(source: HeadersOrMessage) -> Mapping[str, Any]:
    return source.headers if isinstance(source, Message) else source


def _match_prefix(key: str) -> Prefix:
    for prefix in Prefix.recognized():
        if key.startswith(prefix.value):
            return prefix
    return Prefix.NONE


# ===========================================================
# Prefix detection
# ===========================================================


def detect_prefix(headers: HeadersOrMessage) -> Prefix:
    """
    Determine the transport prefix used by a header mapping.

    The first key (in mapping order) that starts with a recognized prefix
    decides. Mappings that mix prefixes therefore resolve by key order.

    Returns:
        The detected ``Prefix``, or ``Prefix.NONE`` for prefixless
        (structured-mode) mappings.
    """
    for key in _headers_of(headers):
        prefix = _match_prefix(key)
        if prefix is not Prefix.NONE:
            return prefix
    return Prefix.NONE


def is_attribute(key: str) -> bool:
    """Whether ``key`` carries any recognized CloudEvents prefix."""
    return _match_prefix(key) is not Prefix.NONE


# ===========================================================
# Key canonicalization
# ===========================================================


def canonicalize_headers(headers: MutableMapping[str, Any], force_all: bool = False) -> None:
    """
    Rewrite attribute keys of ``headers`` in place to the ``ce-`` prefix.

    ``ce_source`` and ``cloudEvents:source`` both become ``ce-source``;
    values are moved as-is. With ``force_all`` every unprefixed key is
    prefixed too (``source`` -> ``ce-source``), which is what a
    structured-mode document needs. Without it, unprefixed keys are left
    alone.

    Args:
        headers: Mutable mapping to rewrite.
        force_all: Prefix keys that carry no recognized prefix.
    """
    for key in list(headers):
        prefix = _match_prefix(key)
        if prefix is Prefix.CANONICAL:
            continue
        if prefix is Prefix.NONE and not force_all:
            continue
        value = headers.pop(key)
        headers[Prefix.CANONICAL.key(key[len(prefix.value):])] = value


# ===========================================================
# Classification
# ===========================================================


def is_cloud_event(headers: HeadersOrMessage) -> bool:
    """
    Whether canonicalized headers describe a binary-mode CloudEvent.

    Checks only for the presence of ``ce-specversion``, ``ce-type`` and
    ``ce-source``. Headers must already be canonical.
    """
    values = _headers_of(headers)
    return all(key in values for key in CloudEventAttributes.REQUIRED_FOR_DETECTION)


# ===========================================================
# Mode conversion
# ===========================================================


def is_structured(
    headers: HeadersOrMessage,
    resolver: Optional[ContentTypeResolver] = None,
) -> bool:
    """
    Whether ``to_canonical`` treats these headers as a structured-mode event.

    True when the headers are not a binary-mode CloudEvent and declare an
    ``application/cloudevents`` transport content type. Headers must
    already be canonical.
    """
    values = _headers_of(headers)
    if is_cloud_event(values) or MessageHeaders.CONTENT_TYPE not in values:
        return False
    content_type = (resolver or get_content_type_resolver()).resolve(values)
    return content_type is not None and is_structured_cloudevent(content_type)


def to_canonical(
    message: Message,
    converter: PayloadConverter,
    *,
    resolver: Optional[ContentTypeResolver] = None,
    default_data_content_type: str = DEFAULT_DATA_CONTENT_TYPE,
) -> Message:
    """
    Return the canonical binary-mode form of ``message``.

    - Structured-mode messages (``application/cloudevents+json`` and
      friends) are deserialized with ``converter`` and rebuilt with the
      event attributes as ``ce-`` headers and ``data`` as payload.
    - Binary-mode and other content-typed messages are rebuilt with
      canonical headers and their content type re-applied.
    - Anything else is returned as is.

    The input message is never modified.

    Raises:
        Whatever ``converter.from_message`` raises, unchanged.
    """
    resolver = resolver or get_content_type_resolver()
    headers = message.copy_headers()
    canonicalize_headers(headers)

    data_content_type = headers.get(CloudEventAttributes.DATACONTENTTYPE)
    binary = is_cloud_event(headers)

    if is_structured(headers, resolver):
        content_type = resolver.resolve(headers)
        logger.debug("Converting structured-mode CloudEvent (%s) to binary mode", content_type)
        return _structured_to_binary(
            message,
            headers,
            content_type,
            converter,
            envelope_data_content_type=data_content_type,
            default_data_content_type=default_data_content_type,
        )

    if binary and data_content_type:
        logger.debug("Binary-mode CloudEvent, content type %s", data_content_type)
        return (
            MessageBuilder(message.payload, headers)
            .set_header(MessageHeaders.CONTENT_TYPE, _as_text(data_content_type))
            .build()
        )

    content_type = headers.get(MessageHeaders.CONTENT_TYPE)
    if content_type:
        return (
            MessageBuilder(message.payload, headers)
            .set_header(MessageHeaders.CONTENT_TYPE, content_type)
            .build()
        )

    return message


def _structured_to_binary(
    message: Message,
    envelope: Mapping[str, Any],
    content_type: MimeType,
    converter: PayloadConverter,
    *,
    envelope_data_content_type: Any,
    default_data_content_type: str,
) -> Message:
    suffix = content_type.suffix or APPLICATION_JSON.subtype
    deserialization_type = MimeType(content_type.type, suffix, content_type.parameters)
    structured_message = (
        MessageBuilder.from_message(message)
        .set_header(MessageHeaders.CONTENT_TYPE, deserialization_type)
        .build()
    )

    structured_event = converter.from_message(structured_message, dict)
    canonicalize_headers(structured_event, force_all=True)

    data_content_type = (
        envelope_data_content_type
        or structured_event.get(CloudEventAttributes.DATACONTENTTYPE)
        or default_data_content_type
    )

    payload = structured_event.pop(CloudEventAttributes.DATA, None)
    encoded = structured_event.pop(CloudEventAttributes.DATA_BASE64, None)
    if payload is None and encoded is not None:
        payload = base64.b64decode(encoded, validate=True)
    if payload is None:
        payload = {}

    builder = MessageBuilder(payload, structured_event)
    for key, value in envelope.items():
        if key != MessageHeaders.ID:
            builder.set_header(key, value)
    builder.set_header(MessageHeaders.CONTENT_TYPE, _as_text(data_content_type))
    return builder.build()


def to_structured(
    message: Message,
    converter: Any,
    *,
    data_content_type: Optional[str] = None,
) -> Message:
    """
    Serialize a binary-mode CloudEvent into a structured-mode message.

    Attributes under any recognized prefix become top-level fields of a
    JSON document, the payload becomes ``data``. Headers that aren't
    CloudEvent attributes stay on the envelope, whose content type becomes
    ``application/cloudevents+json``.

    Byte payloads are decoded into ``data`` when their content type is
    one the converter reads, and stored as ``data_base64`` otherwise.

    Args:
        message: A binary-mode CloudEvent message.
        converter: A ``JsonPayloadConverter`` (or anything with the same
            ``supports``, ``from_message`` and ``to_payload`` methods).
        data_content_type: Overrides the ``datacontenttype`` written into
            the document.

    Raises:
        ValueError: If the message isn't a binary-mode CloudEvent.
    """
    headers = message.copy_headers()
    canonicalize_headers(headers)
    if not is_cloud_event(headers):
        raise ValueError(
            "Message is not a binary-mode CloudEvent: "
            "ce-specversion, ce-type and ce-source are required"
        )

    canonical = Prefix.CANONICAL.value
    document: dict[str, Any] = {}
    envelope: dict[str, Any] = {}
    for key, value in headers.items():
        if key.startswith(canonical):
            document[key[len(canonical):]] = value
        elif key != MessageHeaders.ID:
            envelope[key] = value

    content_type = envelope.pop(MessageHeaders.CONTENT_TYPE, None)
    if data_content_type:
        document[CloudEventAttributes.DATACONTENTTYPE_NAME] = data_content_type
    elif content_type and CloudEventAttributes.DATACONTENTTYPE_NAME not in document:
        document[CloudEventAttributes.DATACONTENTTYPE_NAME] = _as_text(content_type)

    payload = message.payload
    if isinstance(payload, (bytes, bytearray)):
        declared = document.get(CloudEventAttributes.DATACONTENTTYPE_NAME)
        data_type = MimeType.parse(_as_text(declared)) if declared else APPLICATION_JSON
        if converter.supports(data_type):
            data_message = (
                MessageBuilder.from_message(message)
                .set_header(MessageHeaders.CONTENT_TYPE, data_type)
                .build()
            )
            document[CloudEventAttributes.DATA_NAME] = converter.from_message(data_message, object)
        else:
            document[CloudEventAttributes.DATA_BASE64_NAME] = base64.b64encode(payload).decode("ascii")
    else:
        document[CloudEventAttributes.DATA_NAME] = payload

    body = converter.to_payload(document, APPLICATION_JSON)
    return (
        MessageBuilder(body, envelope)
        .set_header(MessageHeaders.CONTENT_TYPE, str(APPLICATION_CLOUDEVENTS_JSON))
        .build()
    )


def _as_text(value: Any) -> Any:
    return str(value) if isinstance(value, MimeType) else value


# ===========================================================
# Typed accessors
# ===========================================================


def _attribute_key(headers: Mapping[str, Any], name: str) -> str:
    prefix = detect_prefix(headers)
    # bare "id" is the transport identity, never an attribute
    if prefix is Prefix.NONE:
        prefix = Prefix.CANONICAL
    return prefix.key(name)


def _get(source: HeadersOrMessage, name: str) -> Any:
    headers = _headers_of(source)
    return headers.get(_attribute_key(headers, name))


def _get_uri(value: Any, name: str) -> Optional[SplitResult]:
    if value is None or isinstance(value, SplitResult):
        return value
    if not isinstance(value, str) or not value:
        raise InvalidAttributeError(f"Attribute {name!r} is not a URI: {value!r}")
    if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value):
        raise InvalidAttributeError(
            f"Attribute {name!r} is not a URI: {value!r} contains whitespace or control characters"
        )
    try:
        uri = urlsplit(value)
        uri.port  # validates the port component
    except ValueError as exc:
        raise InvalidAttributeError(f"Attribute {name!r} is not a URI: {exc}") from exc
    return uri


def get_id(message: HeadersOrMessage) -> Optional[str]:
    return _get(message, CloudEventAttributes.ID_NAME)


def get_source(message: HeadersOrMessage) -> Optional[SplitResult]:
    """The ``source`` attribute parsed as a URI reference."""
    return _get_uri(_get(message, CloudEventAttributes.SOURCE_NAME), CloudEventAttributes.SOURCE_NAME)


def get_spec_version(message: HeadersOrMessage) -> Optional[str]:
    return _get(message, CloudEventAttributes.SPECVERSION_NAME)


def get_type(message: HeadersOrMessage) -> Optional[str]:
    return _get(message, CloudEventAttributes.TYPE_NAME)


def get_data_content_type(message: HeadersOrMessage) -> Optional[str]:
    return _as_text(_get(message, CloudEventAttributes.DATACONTENTTYPE_NAME))


def get_data_schema(message: HeadersOrMessage) -> Optional[SplitResult]:
    """The ``dataschema`` attribute, falling back to the v0.3 ``schemaurl``."""
    value = _get(message, CloudEventAttributes.DATASCHEMA_NAME)
    if value is None:
        value = _get(message, CloudEventAttributes.SCHEMAURL_NAME)
    return _get_uri(value, CloudEventAttributes.DATASCHEMA_NAME)


def get_subject(message: HeadersOrMessage) -> Optional[str]:
    return _get(message, CloudEventAttributes.SUBJECT_NAME)


def get_time(message: HeadersOrMessage) -> Optional[datetime]:
    """
    The ``time`` attribute as a ``datetime``.

    RFC 3339 strings are parsed, including a trailing ``Z`` and fractional
    seconds of any precision (truncated to microseconds).
    """
    value = _get(message, CloudEventAttributes.TIME_NAME)
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        try:
            return datetime.fromisoformat(text)
        except ValueError as exc:
            raise InvalidAttributeError(f"Attribute 'time' is not a timestamp: {value!r}") from exc
    raise InvalidAttributeError(f"Attribute 'time' is not a timestamp: {value!r}")


def get_data(message: Message) -> Any:
    return message.payload


def get_attributes(message: HeadersOrMessage) -> dict[str, Any]:
    """Every header carrying a recognized CloudEvents prefix, keys unchanged."""
    return {k: v for k, v in _headers_of(message).items() if is_attribute(k)}


__all__ = [
    "InvalidAttributeError",
    "DEFAULT_DATA_CONTENT_TYPE",
    "detect_prefix",
    "is_attribute",
    "is_structured",
    "canonicalize_headers",
    "is_cloud_event",
    "to_canonical",
    "to_structured",
    "get_id",
    "get_source",
    "get_spec_version",
    "get_type",
    "get_data_content_type",
    "get_data_schema",
    "get_subject",
    "get_time",
    "get_data",
    "get_attributes",
]
