"""
API Module Initialization
"""

from rewrite_proxy.api.health import router as health_router
from rewrite_proxy.api.proxy import router as proxy_router

__all__ = [
    "health_router",
    "proxy_router",
]
