"""
Test Configuration Module
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Union

import httpx
import pytest

from rewrite_proxy.config import Settings
from rewrite_proxy.main import create_app

UPSTREAM_URL = "http://upstream.test"
PROXY_URL = "http://proxy.test"


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the environment and any .env file"""
    values: dict[str, Any] = {
        "TARGET": UPSTREAM_URL,
        "LOG_REQUESTS": False,
        "CSP_ENABLED": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def proxy_client_factory():
    """
    Build an in-process client talking to the proxy, whose upstream is either an
    ASGI app or an httpx transport (e.g. httpx.MockTransport).
    """

    @asynccontextmanager
    async def factory(
        upstream: Union[httpx.AsyncBaseTransport, Any],
        **overrides: Any,
    ) -> AsyncIterator[httpx.AsyncClient]:
        if isinstance(upstream, httpx.AsyncBaseTransport):
            transport = upstream
        else:
            transport = httpx.ASGITransport(app=upstream)
        async with httpx.AsyncClient(transport=transport) as upstream_client:
            app = create_app(make_settings(**overrides), client=upstream_client)
            async with httpx.AsyncClient(
                transport=httpx.ASGITransport(app=app),
                base_url=PROXY_URL,
            ) as client:
                yield client

    return factory


@pytest.fixture
def settings_factory():
    return make_settings
