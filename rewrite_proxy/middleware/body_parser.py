"""
Body Parser Middleware Module

Reads JSON and URL-encoded request bodies once, keeps the raw bytes and a parsed copy
in the request state, and marks the body as consumed.
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import parse_qs

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from rewrite_proxy.common.content_type import ContentType, MediaKind

logger = logging.getLogger(__name__)

PARSED_KINDS = (MediaKind.JSON, MediaKind.FORM)


def parse_body(raw: bytes, content_type: ContentType) -> Optional[dict[str, Any]]:
    """
    Parse a request body into a mapping

    Form fields appearing once map to a string, repeated fields to a list.

    Args:
        raw: Raw body bytes
        content_type: Declared content type

    Returns:
        Optional[dict]: Parsed mapping, or None when the body is not a JSON object / valid form
    """
    charset = content_type.charset or "utf-8"
    try:
        text = raw.decode(charset)
    except (LookupError, UnicodeDecodeError):
        return None

    if content_type.kind is MediaKind.JSON:
        if not text.strip():
            return {}
        try:
            value = json.loads(text)
        except ValueError:
            return None
        return value if isinstance(value, dict) else None

    if content_type.kind is MediaKind.FORM:
        fields = parse_qs(text, keep_blank_values=True)
        return {name: values[0] if len(values) == 1 else values for name, values in fields.items()}

    return None


class BodyParsingMiddleware:
    """
    Body Parsing Middleware (pure ASGI)

    Only non-GET/HEAD requests with a JSON or URL-encoded content type are read.
    Everything else reaches the application with its body stream untouched.

    State keys set on the request:
    - raw_body: bytes as received
    - parsed_body: mapping, or None when the body could not be parsed
    - body_consumed: True
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] in ("GET", "HEAD"):
            await self.app(scope, receive, send)
            return

        content_type = ContentType.parse(_scope_header(scope, b"content-type"))
        if content_type.kind not in PARSED_KINDS:
            await self.app(scope, receive, send)
            return

        raw = await _read_body(receive)
        parsed = parse_body(raw, content_type)
        if parsed is None:
            logger.debug("Unparseable %s body (%d bytes), keeping raw bytes", content_type.mime_type, len(raw))

        state = scope.setdefault("state", {})
        state["raw_body"] = raw
        state["parsed_body"] = parsed
        state["body_consumed"] = True

        await self.app(scope, _replay(raw, receive), send)


def _scope_header(scope: Scope, name: bytes) -> Optional[str]:
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return None


async def _read_body(receive: Receive) -> bytes:
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def _replay(raw: bytes, receive: Receive) -> Receive:
    # Serve the buffered body once, then fall back to the server's receive (disconnects)
    replayed = False

    async def wrapped() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": raw, "more_body": False}
        return await receive()

    return wrapped
