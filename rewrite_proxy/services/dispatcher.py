"""
Response Dispatcher Module

Delivers an upstream response to the client, either streamed through untouched or
buffered, decoded, rewritten and re-emitted.

Per response: RECEIVED -> GATED -> STREAMING | BUFFERING -> EMITTED | FALLBACK_EMITTED.
A response is never partially rewritten: the buffered path emits either the fully
rewritten body or the original bytes, nothing in between.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Optional

import httpx
from starlette.background import BackgroundTask
from starlette.responses import Response, StreamingResponse

from rewrite_proxy.common.encoding import decode
from rewrite_proxy.common.errors import RewriteError, UpstreamUnreachable
from rewrite_proxy.common.proxy_headers import (
    HeaderList,
    build_intercept_headers,
    build_passthrough_headers,
    encode_raw_headers,
    without,
)
from rewrite_proxy.domain.response import DispatchDecision, UpstreamResponse
from rewrite_proxy.rewrite.engine import RewriteEngine
from rewrite_proxy.services.gate import ResponseGate

logger = logging.getLogger(__name__)

# Responses that never carry a body
BODYLESS_STATUS_CODES = frozenset({204, 304})

# Status reported when the client went away before the body was emitted
CLIENT_CLOSED_REQUEST = 499

# Seconds between client disconnect checks while waiting for the next upstream chunk
DISCONNECT_POLL_INTERVAL = 0.5

DisconnectProbe = Callable[[], Awaitable[bool]]


class ClientDisconnected(Exception):
    """The inbound client disconnected while the upstream body was being read."""


class ResponseDispatcher:
    """
    Response Dispatcher

    Shares only the immutable gate and rewrite engine between requests; all per-response
    state lives in local variables.
    """

    def __init__(
        self,
        gate: ResponseGate,
        engine: RewriteEngine,
        log: Optional[logging.Logger] = None,
        disconnect_poll_interval: float = DISCONNECT_POLL_INTERVAL,
    ):
        self.gate = gate
        self.engine = engine
        self.log = log or logger
        self.disconnect_poll_interval = disconnect_poll_interval

    def classify(self, method: str, request_path: str, upstream: UpstreamResponse) -> DispatchDecision:
        """
        Gate an upstream response before any body bytes are read

        HEAD requests and bodyless statuses are always streamed; there is nothing to rewrite.
        """
        if method.upper() == "HEAD" or upstream.status_code in BODYLESS_STATUS_CODES:
            return DispatchDecision.PASSTHROUGH
        return self.gate.decide(request_path, upstream.content_type)

    async def dispatch(
        self,
        method: str,
        request_path: str,
        upstream: UpstreamResponse,
        is_disconnected: Optional[DisconnectProbe] = None,
    ) -> Response:
        """
        Build the client response for an upstream response

        Args:
            method: Inbound request method
            request_path: Inbound request path
            upstream: Upstream response with its body not yet consumed
            is_disconnected: Probe polled while buffering to abort on client disconnect

        Returns:
            Response: Streaming passthrough or fully buffered response
        """
        decision = self.classify(method, request_path, upstream)
        self.log.info(
            "Upstream response status=%s path=%s content-type=%s decision=%s",
            upstream.status_code,
            request_path,
            upstream.content_type.mime_type or "-",
            decision.value,
        )

        if decision is DispatchDecision.PASSTHROUGH:
            return self._stream(upstream)
        return await self._intercept(request_path, upstream, is_disconnected)

    def _stream(self, upstream: UpstreamResponse) -> StreamingResponse:
        response = StreamingResponse(
            self._relay(upstream),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.close),
        )
        response.raw_headers = encode_raw_headers(build_passthrough_headers(upstream.headers))
        return response

    async def _relay(self, upstream: UpstreamResponse) -> AsyncIterator[bytes]:
        try:
            async for chunk in upstream.stream:
                yield chunk
        finally:
            await upstream.close()

    async def _intercept(
        self,
        request_path: str,
        upstream: UpstreamResponse,
        is_disconnected: Optional[DisconnectProbe],
    ) -> Response:
        try:
            original = await self._buffer(upstream, is_disconnected)
        except ClientDisconnected:
            self.log.info("Client disconnected while buffering path=%s, upstream released", request_path)
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except httpx.TimeoutException as e:
            self.log.error(
                "Upstream body timeout: path=%s status=%s error=%s", request_path, upstream.status_code, e
            )
            raise UpstreamUnreachable(
                message="Upstream request timed out",
                code="upstream_timeout",
                details={"path": request_path},
                status_code=504,
            ) from e
        except httpx.TransportError as e:
            self.log.error(
                "Upstream body read failed: path=%s status=%s error=%s", request_path, upstream.status_code, e
            )
            raise UpstreamUnreachable(
                message="Upstream connection failed while reading the response body",
                details={"path": request_path},
            ) from e

        try:
            body = self._transform(upstream, original)
            headers = build_intercept_headers(upstream.headers)
        except Exception as e:
            self.log.error(
                "Rewrite failed path=%s status=%s encoding=%s, sending original body: %s",
                request_path,
                upstream.status_code,
                upstream.content_encoding.value,
                e,
            )
            return _buffered_response(upstream.status_code, upstream.headers, original)

        return _buffered_response(upstream.status_code, headers, body)

    async def _buffer(
        self,
        upstream: UpstreamResponse,
        is_disconnected: Optional[DisconnectProbe],
    ) -> bytes:
        chunks: list[bytes] = []
        try:
            if is_disconnected is None:
                async for chunk in upstream.stream:
                    chunks.append(chunk)
            else:
                iterator = upstream.stream.__aiter__()
                while True:
                    chunk = await self._next_chunk(iterator, is_disconnected)
                    if chunk is None:
                        break
                    chunks.append(chunk)
                    if await is_disconnected():
                        raise ClientDisconnected()
        finally:
            await upstream.close()
        return b"".join(chunks)

    async def _next_chunk(
        self,
        iterator: AsyncIterator[bytes],
        is_disconnected: DisconnectProbe,
    ) -> Optional[bytes]:
        """
        Wait for the next upstream chunk, checking the client in the meantime

        A stalled upstream does not delay noticing a client that went away.

        Returns:
            Optional[bytes]: Next chunk, or None at end of stream

        Raises:
            ClientDisconnected: The client disconnected before the chunk arrived
        """
        pending = asyncio.ensure_future(_read_next(iterator))
        try:
            while True:
                done, _ = await asyncio.wait({pending}, timeout=self.disconnect_poll_interval)
                if done:
                    return pending.result()
                if await is_disconnected():
                    raise ClientDisconnected()
        finally:
            if not pending.done():
                pending.cancel()
                await asyncio.wait({pending})

    def _transform(self, upstream: UpstreamResponse, original: bytes) -> bytes:
        # decode -> text -> rewrite -> utf-8; each stage raises and short-circuits to fallback
        decoded = decode(original, upstream.content_encoding)
        text = _to_text(decoded, upstream.content_type.charset)
        return self.engine.rewrite(text).encode("utf-8")


async def _read_next(iterator: AsyncIterator[bytes]) -> Optional[bytes]:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return None


def _to_text(data: bytes, charset: Optional[str]) -> str:
    encoding = "utf-8"
    if charset:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            pass
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise RewriteError(f"body is not valid {encoding}: {e}") from e


def _buffered_response(status_code: int, headers: HeaderList, body: bytes) -> Response:
    response = Response(content=body, status_code=status_code)
    final_headers = without(build_passthrough_headers(headers), "content-length")
    final_headers.append(("content-length", str(len(body))))
    response.raw_headers = encode_raw_headers(final_headers)
    return response
