"""
Media types and content-type resolution.

Parses ``type/subtype+suffix; param=value`` strings into ``MimeType`` values
and resolves the transport content type declared on a message's headers.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

CONTENT_TYPE_HEADER = "contentType"


class InvalidMimeTypeError(ValueError):
    """Raised when a content type cannot be parsed."""


@dataclass(frozen=True)
class MimeType:
    """An immutable, parsed media type."""

    type: str
    subtype: str
    parameters: Mapping[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def parse(cls, value: str) -> MimeType:
        """
        Parse a media type string.

        Type and subtype are lower-cased. Parameters are kept with their
        names lower-cased and surrounding quotes removed.

        Raises:
            InvalidMimeTypeError: If ``value`` is not ``type/subtype``.
        """
        if not isinstance(value, str) or not value.strip():
            raise InvalidMimeTypeError(f"Invalid mime type {value!r}: must not be empty")

        full_type, _, raw_params = value.partition(";")
        full_type = full_type.strip()
        if full_type == "*":
            full_type = "*/*"
        if full_type.count("/") != 1:
            raise InvalidMimeTypeError(
                f"Invalid mime type {value!r}: does not contain exactly one '/'"
            )

        main_type, subtype = (part.strip().lower() for part in full_type.split("/"))
        if not main_type or not subtype:
            raise InvalidMimeTypeError(
                f"Invalid mime type {value!r}: type and subtype must not be empty"
            )
        if main_type == "*" and subtype != "*":
            raise InvalidMimeTypeError(
                f"Invalid mime type {value!r}: wildcard type is legal only in '*/*'"
            )

        parameters: dict[str, str] = {}
        for raw in raw_params.split(";"):
            raw = raw.strip()
            if not raw:
                continue
            name, sep, param_value = raw.partition("=")
            if not sep or not name.strip():
                raise InvalidMimeTypeError(
                    f"Invalid mime type {value!r}: malformed parameter {raw!r}"
                )
            parameters[name.strip().lower()] = param_value.strip().strip('"')

        return cls(main_type, subtype, parameters)

    @property
    def suffix(self) -> Optional[str]:
        """Structured syntax suffix (``json`` for ``cloudevents+json``)."""
        _, plus, suffix = self.subtype.rpartition("+")
        return suffix if plus and suffix else None

    @property
    def charset(self) -> Optional[str]:
        return self.parameters.get("charset")

    def includes(self, other: MimeType) -> bool:
        """Whether this type (possibly a wildcard) covers ``other``."""
        if self.type == "*":
            return True
        if self.type != other.type:
            return False
        if self.subtype in ("*", other.subtype):
            return True
        # application/*+json covers application/cloudevents+json
        if self.subtype.startswith("*+"):
            return other.suffix == self.subtype[2:]
        return False

    def __str__(self) -> str:
        params = "".join(f";{name}={value}" for name, value in self.parameters.items())
        return f"{self.type}/{self.subtype}{params}"


APPLICATION_JSON = MimeType.parse("application/json")
APPLICATION_CLOUDEVENTS = MimeType.parse("application/cloudevents")
APPLICATION_CLOUDEVENTS_JSON = MimeType.parse("application/cloudevents+json")


def is_structured_cloudevent(mime_type: MimeType) -> bool:
    """True for ``application/cloudevents`` and its ``+suffix`` variants."""
    return (
        mime_type.type == APPLICATION_CLOUDEVENTS.type
        and mime_type.subtype.startswith(APPLICATION_CLOUDEVENTS.subtype)
    )


class ContentTypeResolver:
    """
    Resolves the transport content type declared on message headers.

    Header values may be ``MimeType`` instances or strings; anything else
    is rejected.
    """

    def __init__(self, header_name: str = CONTENT_TYPE_HEADER):
        self.header_name = header_name

    def resolve(self, headers: Optional[Mapping[str, Any]]) -> Optional[MimeType]:
        if not headers:
            return None
        value = headers.get(self.header_name)
        if value is None:
            return None
        if isinstance(value, MimeType):
            return value
        if isinstance(value, str):
            return MimeType.parse(value)
        raise InvalidMimeTypeError(
            f"Unknown type for {self.header_name!r} header: {type(value).__name__}"
        )


@functools.lru_cache(maxsize=None)
def get_content_type_resolver() -> ContentTypeResolver:
    """Process-wide resolver, created on first use and never mutated."""
    return ContentTypeResolver()


__all__ = [
    "CONTENT_TYPE_HEADER",
    "InvalidMimeTypeError",
    "MimeType",
    "APPLICATION_JSON",
    "APPLICATION_CLOUDEVENTS",
    "APPLICATION_CLOUDEVENTS_JSON",
    "is_structured_cloudevent",
    "ContentTypeResolver",
    "get_content_type_resolver",
]
