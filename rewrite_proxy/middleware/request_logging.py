"""
Request Logging Middleware Module

Logs every inbound request: method, URL, headers, query and parsed body.
"""

import logging
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from rewrite_proxy.common.sanitizer import sanitize_headers, truncate_for_log

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request Logging Middleware

    Credentials in headers are masked. Bodies are only logged when the body parser
    middleware already parsed them; raw streams are never read here.
    """

    def __init__(
        self,
        app: ASGIApp,
        body_max_length: int = 2000,
        log: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(app)
        self.body_max_length = body_max_length
        self.log = log or logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        parsed_body = getattr(request.state, "parsed_body", None)
        self.log.info(
            "Request %s %s headers=%s query=%s body=%s",
            request.method,
            request.url.path + (f"?{request.url.query}" if request.url.query else ""),
            sanitize_headers(request.headers.items()),
            dict(request.query_params),
            truncate_for_log(parsed_body, self.body_max_length) if parsed_body is not None else "-",
        )
        return await call_next(request)
