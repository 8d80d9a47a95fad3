"""
Service Layer Module Initialization
"""

from rewrite_proxy.services.body_restreamer import RestreamedBody, restream_body
from rewrite_proxy.services.dispatcher import ResponseDispatcher
from rewrite_proxy.services.gate import ResponseGate
from rewrite_proxy.services.proxy_service import ProxyService

__all__ = [
    "RestreamedBody",
    "restream_body",
    "ResponseGate",
    "ResponseDispatcher",
    "ProxyService",
]
