"""Proxy Frontend Service Module

Forwards inbound requests to the configured upstream and hands the upstream
response to the dispatcher as soon as its headers arrive."""

import logging
from collections.abc import AsyncIterator
from typing import Optional, Union

import httpx
from starlette.responses import Response

from rewrite_proxy.common.errors import UpstreamUnreachable
from rewrite_proxy.common.proxy_headers import (
    HeaderList,
    build_upstream_request_headers,
    get_header,
)
from rewrite_proxy.domain.request import ProxyRequest
from rewrite_proxy.domain.response import UpstreamResponse
from rewrite_proxy.services.body_restreamer import restream_body
from rewrite_proxy.services.dispatcher import DisconnectProbe, ResponseDispatcher

logger = logging.getLogger(__name__)

OutboundBody = Union[bytes, AsyncIterator[bytes], None]


class ProxyService:
    """
    Proxy Frontend Service

    Handles the complete flow of a proxied request:
    1. Rewrite the Host header to the upstream origin
    2. Choose the outbound body (inbound stream, preserved raw bytes, or re-serialized parsed body)
    3. Send upstream and wait for response headers only
    4. Hand the response to the dispatcher
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        target: str,
        dispatcher: ResponseDispatcher,
        forward_raw_body: bool = False,
        log: Optional[logging.Logger] = None,
    ):
        """
        Initialize Service

        Args:
            client: Shared upstream HTTP client (timeouts configured on it)
            target: Upstream base URL
            dispatcher: Response dispatcher
            forward_raw_body: Prefer preserved raw bytes over re-serializing a parsed body
            log: Logger
        """
        self.client = client
        self.target = httpx.URL(target)
        self.dispatcher = dispatcher
        self.forward_raw_body = forward_raw_body
        self.log = log or logger

    @property
    def upstream_host(self) -> str:
        return self.target.netloc.decode("ascii")

    def build_url(self, request: ProxyRequest) -> str:
        """
        Build the upstream URL for a request

        The request path is appended to the target's own path, so a target of
        "https://origin/base" maps "/cardInfo" to "https://origin/base/cardInfo".
        """
        base_path = self.target.path.rstrip("/")
        return f"{self.target.scheme}://{self.upstream_host}{base_path}{request.target}"

    def _outbound_body(
        self,
        request: ProxyRequest,
        inbound_stream: Optional[AsyncIterator[bytes]],
    ) -> tuple[OutboundBody, HeaderList]:
        """
        Choose the outbound body and the framing headers that go with it

        Returns:
            tuple: (body, extra headers)
        """
        if request.body_consumed:
            # Raw bytes win when configured, or when the parser could not make sense of them
            prefer_raw = self.forward_raw_body or request.parsed_body is None
            if prefer_raw and request.raw_body is not None and request.has_body_semantics:
                return request.raw_body, [("content-length", str(len(request.raw_body)))]

            restreamed = restream_body(
                request.method,
                request.parsed_body,
                request.content_type,
                raw_body=request.raw_body,
                log=self.log,
            )
            if restreamed is None:
                return None, []
            return restreamed.content, [("content-length", str(restreamed.content_length))]

        # Untouched inbound body: relay it with the original framing
        content_length = get_header(request.headers, "content-length")
        if content_length is not None:
            return inbound_stream, [("content-length", content_length)]
        transfer_encoding = get_header(request.headers, "transfer-encoding")
        if transfer_encoding is not None and "chunked" in transfer_encoding.lower():
            return inbound_stream, []
        return None, []

    async def forward(
        self,
        request: ProxyRequest,
        inbound_stream: Optional[AsyncIterator[bytes]] = None,
    ) -> UpstreamResponse:
        """
        Send a request upstream and return once response headers are available

        Args:
            request: Inbound request
            inbound_stream: Inbound body stream, used when no middleware consumed it

        Returns:
            UpstreamResponse: Response with its body still unread

        Raises:
            UpstreamUnreachable: Connection failed or timed out
        """
        url = self.build_url(request)
        body, framing = self._outbound_body(request, inbound_stream)
        headers = build_upstream_request_headers(request.headers, self.upstream_host) + framing

        self.log.debug("Upstream request: method=%s url=%s", request.method, url)

        outbound = self.client.build_request(
            method=request.method,
            url=url,
            headers=headers,
            content=body,
        )
        try:
            response = await self.client.send(outbound, stream=True)
        except httpx.TimeoutException as e:
            self.log.error("Upstream timeout: method=%s url=%s error=%s", request.method, url, e)
            raise UpstreamUnreachable(
                message="Upstream request timed out",
                code="upstream_timeout",
                details={"target": str(self.target)},
                status_code=504,
            ) from e
        except httpx.RequestError as e:
            self.log.error("Upstream unreachable: method=%s url=%s error=%s", request.method, url, e)
            raise UpstreamUnreachable(
                message="Upstream unreachable",
                details={"target": str(self.target)},
            ) from e

        return UpstreamResponse.from_httpx(response)

    async def handle(
        self,
        request: ProxyRequest,
        inbound_stream: Optional[AsyncIterator[bytes]] = None,
        is_disconnected: Optional[DisconnectProbe] = None,
    ) -> Response:
        """
        Proxy a request end to end

        Raises:
            UpstreamUnreachable: Connection failed or timed out
        """
        upstream = await self.forward(request, inbound_stream)
        return await self.dispatcher.dispatch(
            request.method,
            request.path,
            upstream,
            is_disconnected=is_disconnected,
        )
