"""
Content-Type Parsing Module

Parses Content-Type header values into a MIME type plus parameters and
classifies them into the media kinds the proxy cares about.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class MediaKind(str, Enum):
    """Media kinds recognized by the proxy"""

    HTML = "html"
    JSON = "json"
    FORM = "form"
    OTHER = "other"


_KIND_BY_MIME = {
    "text/html": MediaKind.HTML,
    "application/xhtml+xml": MediaKind.HTML,
    "application/json": MediaKind.JSON,
    "application/x-www-form-urlencoded": MediaKind.FORM,
}


@dataclass(frozen=True)
class ContentType:
    """
    Parsed Content-Type

    Attributes:
        mime_type: Lower-cased "type/subtype", empty when the header is absent
        params: Parameters with lower-cased names, e.g. {"charset": "utf-8"}
    """

    mime_type: str = ""
    params: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, value: str | None) -> ContentType:
        """
        Parse a Content-Type header value

        Parameter order and casing do not matter, quoted parameter values are unquoted.

        Args:
            value: Raw header value

        Returns:
            ContentType: Parsed value (empty mime type when absent)
        """
        if not value:
            return cls()

        mime, _, rest = value.partition(";")
        params: dict[str, str] = {}
        for part in rest.split(";"):
            name, sep, param_value = part.partition("=")
            name = name.strip().lower()
            if not sep or not name:
                continue
            params[name] = param_value.strip().strip('"')
        return cls(mime_type=mime.strip().lower(), params=params)

    @property
    def kind(self) -> MediaKind:
        """Media kind of this content type"""
        if self.mime_type in _KIND_BY_MIME:
            return _KIND_BY_MIME[self.mime_type]
        # Structured syntax suffix, e.g. application/problem+json
        if self.mime_type.startswith("application/") and self.mime_type.endswith("+json"):
            return MediaKind.JSON
        return MediaKind.OTHER

    @property
    def charset(self) -> str | None:
        return self.params.get("charset")

    def matches(self, kind: MediaKind) -> bool:
        return self.kind is kind

    def __str__(self) -> str:
        if not self.params:
            return self.mime_type
        params = "; ".join(f"{name}={value}" for name, value in self.params.items())
        return f"{self.mime_type}; {params}"
