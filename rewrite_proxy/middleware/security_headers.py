"""
Security Header Middleware Module
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp


class ContentSecurityPolicyMiddleware(BaseHTTPMiddleware):
    """
    Adds a Content-Security-Policy header to every response.

    A policy already set by the upstream is left as is.
    """

    def __init__(self, app: ASGIApp, policy: str) -> None:
        super().__init__(app)
        self.policy = policy

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        if "content-security-policy" not in response.headers:
            response.headers["Content-Security-Policy"] = self.policy
        return response
