"""
Reverse Proxy API

Catch-all route forwarding every request that no other route claimed to the upstream.
"""

from fastapi import APIRouter, Request

from rewrite_proxy.api.deps import ProxyServiceDep
from rewrite_proxy.domain.request import ProxyRequest

router = APIRouter(tags=["Proxy"])

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def build_proxy_request(request: Request) -> ProxyRequest:
    """
    Capture an inbound request

    The raw path is kept so percent-encoding reaches the upstream unchanged.
    """
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    state = request.state
    return ProxyRequest(
        method=request.method,
        path=path,
        query=request.url.query,
        headers=request.headers.items(),
        parsed_body=getattr(state, "parsed_body", None),
        raw_body=getattr(state, "raw_body", None),
        body_consumed=getattr(state, "body_consumed", False),
    )


@router.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def proxy(request: Request, service: ProxyServiceDep):
    """
    Reverse Proxy Endpoint
    """
    proxy_request = build_proxy_request(request)
    inbound_stream = None if proxy_request.body_consumed else request.stream()
    return await service.handle(
        proxy_request,
        inbound_stream,
        is_disconnected=request.is_disconnected,
    )
