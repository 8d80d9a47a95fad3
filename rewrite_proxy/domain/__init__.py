"""
Domain Model Module Initialization
"""

from rewrite_proxy.domain.request import ProxyRequest
from rewrite_proxy.domain.response import DispatchDecision, UpstreamResponse

__all__ = [
    "ProxyRequest",
    "UpstreamResponse",
    "DispatchDecision",
]
