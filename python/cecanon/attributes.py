"""
CloudEvents Attribute Names
===========================

Defines the canonical CloudEvents context attribute names, the transport
prefixes they may arrive under, and the OpenTelemetry semantic attributes
used when a canonicalized event is recorded on a span.

Canonical form always uses the HTTP binding prefix ``ce-``:

- HTTP:  ``ce-source``           (canonical)
- Kafka: ``ce_source``
- AMQP:  ``cloudEvents:source``

Structured-mode documents carry no prefix at all (``"source"``).
"""

from enum import Enum


class Prefix(Enum):
    """Transport-specific attribute prefixes recognized on message headers."""

    NONE = ""
    CANONICAL = "ce-"
    KAFKA = "ce_"
    AMQP = "cloudEvents:"

    @classmethod
    def recognized(cls) -> tuple["Prefix", ...]:
        """Prefixes that can be detected on a key, in detection order."""
        return (cls.CANONICAL, cls.KAFKA, cls.AMQP)

    def key(self, name: str) -> str:
        """Return ``name`` under this prefix."""
        return self.value + name


class CloudEventAttributes:
    """Constants for CloudEvents context attributes."""

    # -------------------------------------------------------
    # Bare attribute names (structured-mode field names)
    # -------------------------------------------------------
    DATA_NAME = "data"
    DATA_BASE64_NAME = "data_base64"  # JSON format field for binary data
    ID_NAME = "id"
    SOURCE_NAME = "source"
    SPECVERSION_NAME = "specversion"
    TYPE_NAME = "type"
    DATACONTENTTYPE_NAME = "datacontenttype"
    DATASCHEMA_NAME = "dataschema"
    SCHEMAURL_NAME = "schemaurl"  # v0.3 name of dataschema
    SUBJECT_NAME = "subject"
    TIME_NAME = "time"

    # -------------------------------------------------------
    # Canonical header keys
    # -------------------------------------------------------
    DATA = Prefix.CANONICAL.key(DATA_NAME)
    DATA_BASE64 = Prefix.CANONICAL.key(DATA_BASE64_NAME)
    ID = Prefix.CANONICAL.key(ID_NAME)
    SOURCE = Prefix.CANONICAL.key(SOURCE_NAME)
    SPECVERSION = Prefix.CANONICAL.key(SPECVERSION_NAME)
    TYPE = Prefix.CANONICAL.key(TYPE_NAME)
    DATACONTENTTYPE = Prefix.CANONICAL.key(DATACONTENTTYPE_NAME)
    DATASCHEMA = Prefix.CANONICAL.key(DATASCHEMA_NAME)
    SCHEMAURL = Prefix.CANONICAL.key(SCHEMAURL_NAME)
    SUBJECT = Prefix.CANONICAL.key(SUBJECT_NAME)
    TIME = Prefix.CANONICAL.key(TIME_NAME)

    # Attributes whose presence marks a binary-mode CloudEvent
    REQUIRED_FOR_DETECTION = (SPECVERSION, TYPE, SOURCE)

    # -------------------------------------------------------
    # Defaults
    # -------------------------------------------------------
    SPECVERSION_1_0 = "1.0"
    DEFAULT_SOURCE = "urn:cecanon"


class CloudEventSpanAttributes:
    """OpenTelemetry semantic attributes for CloudEvents (``cloudevents.*``)."""

    EVENT_ID = "cloudevents.event_id"
    EVENT_SOURCE = "cloudevents.event_source"
    EVENT_SPEC_VERSION = "cloudevents.event_spec_version"
    EVENT_TYPE = "cloudevents.event_type"
    EVENT_SUBJECT = "cloudevents.event_subject"

    # -------------------------------------------------------
    # cecanon span event
    # -------------------------------------------------------
    CANONICALIZED_EVENT = "cloudevents.canonicalized"
    MODE = "cecanon.mode"
    PREFIX = "cecanon.prefix"

    MODE_STRUCTURED = "structured"
    MODE_BINARY = "binary"
    MODE_PASSTHROUGH = "passthrough"
