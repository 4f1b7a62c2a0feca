"""Configuration for canonicalization and its instrumentation."""

from __future__ import annotations

import os
from dataclasses import dataclass

from cecanon.mimetype import APPLICATION_JSON, MimeType

_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class CanonicalizerConfig:
    """Single config object for ``CloudEventInstrumentor``.

    Empty values fall back to ``CECANON_*`` environment variables.
    """

    default_data_content_type: str = ""
    tracer_name: str = ""
    record_span_events: bool | None = None

    def __post_init__(self) -> None:
        if not self.default_data_content_type:
            self.default_data_content_type = (
                os.getenv("CECANON_DEFAULT_DATA_CONTENT_TYPE", "").strip() or str(APPLICATION_JSON)
            )
        if not self.tracer_name:
            self.tracer_name = os.getenv("CECANON_TRACER_NAME", "").strip() or "cecanon"
        if self.record_span_events is None:
            raw = os.getenv("CECANON_RECORD_SPAN_EVENTS", "").strip().lower()
            self.record_span_events = raw not in _FALSE_VALUES

        # raises InvalidMimeTypeError
        MimeType.parse(self.default_data_content_type)
