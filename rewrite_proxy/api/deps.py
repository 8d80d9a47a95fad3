"""
API Dependency Injection Module

Provides the dependencies required by FastAPI routes. Everything is built once by
the application factory and read from ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request

from rewrite_proxy.config import Settings
from rewrite_proxy.services.proxy_service import ProxyService


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with"""
    return request.app.state.settings


def get_proxy_service(request: Request) -> ProxyService:
    """Shared proxy service"""
    return request.app.state.proxy_service


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ProxyServiceDep = Annotated[ProxyService, Depends(get_proxy_service)]
