"""
Upstream Response Domain Model
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

import httpx

from rewrite_proxy.common.content_type import ContentType
from rewrite_proxy.common.encoding import ContentEncoding
from rewrite_proxy.common.proxy_headers import HeaderList, get_header


class DispatchDecision(str, Enum):
    """How a response body is delivered to the client"""

    PASSTHROUGH = "passthrough"
    INTERCEPT = "intercept"


async def _noop_close() -> None:
    return None


@dataclass(frozen=True)
class UpstreamResponse:
    """
    Upstream Response Data Class

    Wraps the upstream status line, headers and raw body stream. Body chunks are
    still content-encoded; nothing here decodes them.
    """

    status_code: int
    headers: HeaderList
    stream: AsyncIterator[bytes]
    close: Callable[[], Awaitable[None]] = field(default=_noop_close)

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> UpstreamResponse:
        """
        Wrap a streamed httpx response

        The raw (not auto-decompressed) byte iterator is used so passthrough stays
        byte-identical to what the upstream sent.

        Args:
            response: Response returned by ``AsyncClient.send(..., stream=True)``

        Returns:
            UpstreamResponse: Wrapped response
        """
        return cls(
            status_code=response.status_code,
            headers=list(response.headers.multi_items()),
            stream=response.aiter_raw(),
            close=response.aclose,
        )

    @property
    def content_encoding(self) -> ContentEncoding:
        return ContentEncoding.parse(get_header(self.headers, "content-encoding"))

    @property
    def content_type(self) -> ContentType:
        return ContentType.parse(get_header(self.headers, "content-type"))
