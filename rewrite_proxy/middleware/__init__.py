"""
Middleware Package

Contains application middleware components.
"""

from rewrite_proxy.middleware.body_parser import BodyParsingMiddleware
from rewrite_proxy.middleware.request_logging import RequestLoggingMiddleware
from rewrite_proxy.middleware.security_headers import ContentSecurityPolicyMiddleware

__all__ = [
    "BodyParsingMiddleware",
    "RequestLoggingMiddleware",
    "ContentSecurityPolicyMiddleware",
]
