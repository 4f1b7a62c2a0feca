"""
cecanon — CloudEvents Message Canonicalization
==============================================

One canonical view of CloudEvents, whatever binding carried them.

Quick Start::

    from cecanon import MessageBuilder, JsonPayloadConverter, to_canonical, get_type

    incoming = (
        MessageBuilder.with_payload(b'{"specversion": "1.0", "id": "A234", '
                                    b'"source": "/mycontext", "type": "com.example.someevent", '
                                    b'"data": {"msg": "hi"}}')
        .set_header("contentType", "application/cloudevents+json")
        .build()
    )

    message = to_canonical(incoming, JsonPayloadConverter())
    message.payload          # {"msg": "hi"}
    get_type(message)        # "com.example.someevent"

What cecanon does:
  - Detects the attribute prefix in use (HTTP ``ce-``, Kafka ``ce_``,
    AMQP ``cloudEvents:``)
  - Rewrites attribute keys to the canonical ``ce-`` form
  - Tells binary-mode CloudEvents apart from other messages
  - Converts structured-mode messages to binary mode and back
  - Records canonicalized events on OpenTelemetry spans

What cecanon does NOT do:
  - Validate CloudEvents compliance beyond ``specversion``/``type``/``source``
  - Send or receive messages; transport adapters own that
"""

# ── Attribute names ───────────────────────────────────────────────────

from cecanon.attributes import (
    CloudEventAttributes,
    CloudEventSpanAttributes,
    Prefix,
)

# ── Messages & media types ────────────────────────────────────────────

from cecanon.message import (
    Message,
    MessageHeaders,
    MessageBuilder,
    CloudEventMessageBuilder,
)
from cecanon.mimetype import (
    MimeType,
    InvalidMimeTypeError,
    ContentTypeResolver,
    get_content_type_resolver,
    APPLICATION_JSON,
    APPLICATION_CLOUDEVENTS,
    APPLICATION_CLOUDEVENTS_JSON,
)
from cecanon.converter import (
    PayloadConverter,
    JsonPayloadConverter,
    MessageConversionError,
)

# ── Canonicalization (core) ───────────────────────────────────────────

from cecanon.canonical import (
    InvalidAttributeError,
    detect_prefix,
    canonicalize_headers,
    is_cloud_event,
    is_structured,
    to_canonical,
    to_structured,
    get_id,
    get_source,
    get_spec_version,
    get_type,
    get_data_content_type,
    get_data_schema,
    get_subject,
    get_time,
    get_data,
    get_attributes,
)

# ── Instrumentation ───────────────────────────────────────────────────

from cecanon.config import CanonicalizerConfig
from cecanon.instrumentor import CloudEventInstrumentor, get_span_attributes
from cecanon.decorators import cloudevent_function

__version__ = "1.0.0"
__all__ = [
    # ── Attribute names ──
    "CloudEventAttributes",
    "CloudEventSpanAttributes",
    "Prefix",
    # ── Messages & media types ──
    "Message",
    "MessageHeaders",
    "MessageBuilder",
    "CloudEventMessageBuilder",
    "MimeType",
    "InvalidMimeTypeError",
    "ContentTypeResolver",
    "get_content_type_resolver",
    "APPLICATION_JSON",
    "APPLICATION_CLOUDEVENTS",
    "APPLICATION_CLOUDEVENTS_JSON",
    "PayloadConverter",
    "JsonPayloadConverter",
    "MessageConversionError",
    # ── Canonicalization ──
    "InvalidAttributeError",
    "detect_prefix",
    "canonicalize_headers",
    "is_cloud_event",
    "is_structured",
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
    # ── Instrumentation ──
    "CanonicalizerConfig",
    "CloudEventInstrumentor",
    "get_span_attributes",
    "cloudevent_function",
]
