"""
CloudEvent Instrumentor
=======================

Bridges canonicalization with OpenTelemetry. Every message passed through
``CloudEventInstrumentor.canonicalize`` is converted to its canonical
binary form and, at the same time, recorded on a span using the
``cloudevents.*`` semantic attributes.

Usage:
    from cecanon import CloudEventInstrumentor

    instrumentor = CloudEventInstrumentor(
        event_callback=lambda message: store.append(message),
    )

    with tracer.start_as_current_span("consume") as span:
        message = instrumentor.canonicalize(incoming)
"""

import logging
from typing import Any, Callable, Optional

from opentelemetry import trace
from opentelemetry.trace import Span, StatusCode

from cecanon.attributes import CloudEventAttributes, CloudEventSpanAttributes
from cecanon.canonical import (
    canonicalize_headers,
    detect_prefix,
    get_attributes,
    get_id,
    get_spec_version,
    get_subject,
    get_type,
    is_cloud_event,
    is_structured,
    to_canonical,
)
from cecanon.config import CanonicalizerConfig
from cecanon.converter import JsonPayloadConverter, PayloadConverter
from cecanon.message import Message

logger = logging.getLogger(__name__)


def get_span_attributes(message: Message) -> dict[str, str]:
    """
    Return ``cloudevents.*`` span attributes for a canonical message.

    Only attributes present on the message are included. ``source`` is
    reported as stored, without URI parsing.
    """
    headers = message.headers
    attrs: dict[str, str] = {}
    values = {
        CloudEventSpanAttributes.EVENT_ID: get_id(headers),
        CloudEventSpanAttributes.EVENT_SOURCE: get_attributes(headers).get(
            detect_prefix(headers).key(CloudEventAttributes.SOURCE_NAME)
        ),
        CloudEventSpanAttributes.EVENT_SPEC_VERSION: get_spec_version(headers),
        CloudEventSpanAttributes.EVENT_TYPE: get_type(headers),
        CloudEventSpanAttributes.EVENT_SUBJECT: get_subject(headers),
    }
    for name, value in values.items():
        if value is not None:
            attrs[name] = str(value)
    return attrs


class CloudEventInstrumentor:
    """
    Canonicalizes messages and records them on OpenTelemetry spans.

    Responsibilities:
    1. Converts each message to canonical binary form (``to_canonical``).
    2. Sets ``cloudevents.*`` attributes and a ``cloudevents.canonicalized``
       event on the span.
    3. Hands the canonical message to an optional callback.
    """

    def __init__(
        self,
        converter: Optional[PayloadConverter] = None,
        config: Optional[CanonicalizerConfig] = None,
        event_callback: Optional[Callable[[Message], None]] = None,
        tracer_provider: Optional[trace.TracerProvider] = None,
    ):
        """
        Initialize the instrumentor.

        Args:
            converter: Payload converter for structured-mode bodies.
                       Defaults to ``JsonPayloadConverter``.
            config: Defaults and tracing options; ``CanonicalizerConfig()``
                    (environment driven) when omitted.
            event_callback: Optional callback invoked with each canonical
                            message. Failures are logged and ignored.
            tracer_provider: Provider for spans opened by ``start_span``.
                             Defaults to the global provider.
        """
        self.converter = converter or JsonPayloadConverter()
        self.config = config or CanonicalizerConfig()
        self.event_callback = event_callback

        self._tracer = trace.get_tracer(
            self.config.tracer_name, "1.0.0", tracer_provider=tracer_provider
        )

    def canonicalize(self, message: Message, span: Optional[Span] = None) -> Message:
        """
        Return the canonical form of ``message`` and record it on ``span``.

        Uses the current span when ``span`` is not given. Conversion errors
        are recorded on the span and re-raised.
        """
        if span is None:
            span = trace.get_current_span()

        prefix = detect_prefix(message.headers)
        try:
            mode = self._mode(message)
            canonical = to_canonical(
                message,
                self.converter,
                default_data_content_type=self.config.default_data_content_type,
            )
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(StatusCode.ERROR, f"CloudEvent conversion failed: {exc}")
            raise

        self._emit_span_event(span, canonical, mode, prefix.value)

        if self.event_callback:
            try:
                self.event_callback(canonical)
            except Exception as e:
                logger.error(f"CloudEvent callback failed: {e}")

        return canonical

    @staticmethod
    def _mode(message: Message) -> str:
        """The branch ``to_canonical`` takes for ``message``."""
        headers = message.copy_headers()
        canonicalize_headers(headers)
        if is_structured(headers):
            return CloudEventSpanAttributes.MODE_STRUCTURED
        if is_cloud_event(headers):
            return CloudEventSpanAttributes.MODE_BINARY
        return CloudEventSpanAttributes.MODE_PASSTHROUGH

    def _emit_span_event(
        self,
        span: Span,
        canonical: Message,
        mode: str,
        prefix: str,
    ) -> None:
        attrs: dict[str, Any] = get_span_attributes(canonical)
        if attrs:
            span.set_attributes(attrs)

        if not self.config.record_span_events:
            return
        attrs[CloudEventSpanAttributes.MODE] = mode
        attrs[CloudEventSpanAttributes.PREFIX] = prefix
        span.add_event(CloudEventSpanAttributes.CANONICALIZED_EVENT, attributes=attrs)

    def start_span(self, name: str = "cloudevent.canonicalize", **kwargs: Any):
        """Start a current span with this instrumentor's tracer (context manager)."""
        return self._tracer.start_as_current_span(name, **kwargs)
