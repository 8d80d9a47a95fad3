"""
Request Body Re-streaming Module

Rebuilds a wire-format request body from the structured value the body parser
middleware produced, so the body can still be forwarded upstream after the inbound
stream was consumed.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

from rewrite_proxy.common.content_type import ContentType, MediaKind
from rewrite_proxy.common.errors import BodyReencodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RestreamedBody:
    """Serialized body plus the exact Content-Length to send with it"""

    content: bytes

    @property
    def content_length(self) -> int:
        return len(self.content)


def serialize_body(parsed_body: dict[str, Any], content_type: ContentType) -> Optional[bytes]:
    """
    Serialize a parsed body for the given content type

    Args:
        parsed_body: Structured body
        content_type: Content type declared by the original request

    Returns:
        Optional[bytes]: Wire bytes, or None when the content type is not re-serializable

    Raises:
        BodyReencodeError: The value cannot be represented in the declared format
    """
    kind = content_type.kind
    try:
        if kind is MediaKind.JSON:
            return json.dumps(parsed_body, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        if kind is MediaKind.FORM:
            return urlencode(parsed_body, doseq=True).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise BodyReencodeError(content_type.mime_type, str(e)) from e
    return None


def restream_body(
    method: str,
    parsed_body: Optional[dict[str, Any]],
    content_type: ContentType,
    raw_body: Optional[bytes] = None,
    log: Optional[logging.Logger] = None,
) -> Optional[RestreamedBody]:
    """
    Reconstruct the outbound body for a request whose inbound body was already parsed

    GET/HEAD requests and empty parsed bodies produce no body at all. JSON and
    URL-encoded bodies are re-serialized. Other content types forward ``raw_body``
    unchanged when it is available and are dropped otherwise. A serialization failure
    degrades to an empty body instead of aborting the request.

    Args:
        method: HTTP method of the inbound request
        parsed_body: Structured body from the body parser
        content_type: Content type declared by the inbound request
        raw_body: Original body bytes, when still available
        log: Logger to report degraded bodies to

    Returns:
        Optional[RestreamedBody]: Body to send, or None when nothing is written
    """
    log = log or logger
    if method.upper() in ("GET", "HEAD") or not parsed_body:
        return None

    try:
        content = serialize_body(parsed_body, content_type)
    except BodyReencodeError as e:
        log.error("Forwarding request with empty body: %s", e)
        return RestreamedBody(b"")

    if content is not None:
        return RestreamedBody(content)
    if raw_body is not None:
        return RestreamedBody(raw_body)

    log.warning(
        "Dropping parsed body with unsupported content type %r, raw bytes unavailable",
        content_type.mime_type,
    )
    return None
