"""
Rewrite Proxy Application Entry Point

FastAPI application factory: wires configuration, middlewares, the upstream HTTP client
and the proxy components together.
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rewrite_proxy.api import health_router, proxy_router
from rewrite_proxy.common.errors import AppError
from rewrite_proxy.config import Settings, get_settings
from rewrite_proxy.logging_config import setup_logging
from rewrite_proxy.middleware import (
    BodyParsingMiddleware,
    ContentSecurityPolicyMiddleware,
    RequestLoggingMiddleware,
)
from rewrite_proxy.rewrite import RewriteEngine, build_rules
from rewrite_proxy.services.dispatcher import ResponseDispatcher
from rewrite_proxy.services.gate import ResponseGate
from rewrite_proxy.services.proxy_service import ProxyService

logger = logging.getLogger(__name__)


def create_upstream_client(settings: Settings) -> httpx.AsyncClient:
    """
    Create the shared upstream client

    Redirects are relayed to the client rather than followed.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.HTTP_TIMEOUT, connect=settings.HTTP_CONNECT_TIMEOUT),
        follow_redirects=False,
    )


def create_proxy_service(settings: Settings, client: httpx.AsyncClient) -> ProxyService:
    """Build the proxy component graph from configuration"""
    engine = RewriteEngine(
        build_rules(settings.REWRITE_RULES, include_defaults=settings.REWRITE_DEFAULT_RULES)
    )
    gate = ResponseGate(settings.REWRITE_PATH_PREFIX)
    dispatcher = ResponseDispatcher(gate, engine, log=logging.getLogger("rewrite_proxy.dispatcher"))
    logger.info(
        "Proxy target: %s, rewriting HTML under %s with rules %s",
        settings.TARGET,
        settings.REWRITE_PATH_PREFIX,
        engine.rule_names,
    )
    return ProxyService(
        client=client,
        target=settings.TARGET,
        dispatcher=dispatcher,
        forward_raw_body=settings.FORWARD_RAW_BODY,
        log=logging.getLogger("rewrite_proxy.proxy"),
    )


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Create the FastAPI application

    Args:
        settings: Configuration, defaults to the environment
        client: Upstream HTTP client; when given, the caller owns and closes it

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    owns_client = client is None
    upstream_client = client or create_upstream_client(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application Lifecycle Management

        Releases the upstream connection pool on shutdown.
        """
        yield
        if owns_client:
            await upstream_client.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Selective HTML response-rewriting reverse proxy",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.proxy_service = create_proxy_service(settings, upstream_client)

    # Added last runs first: bodies are parsed before requests are logged
    if settings.CSP_ENABLED:
        app.add_middleware(ContentSecurityPolicyMiddleware, policy=settings.CONTENT_SECURITY_POLICY)
    if settings.LOG_REQUESTS:
        app.add_middleware(RequestLoggingMiddleware, body_max_length=settings.LOG_BODY_MAX_LENGTH)
    app.add_middleware(BodyParsingMiddleware)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        """
        Handle application custom exceptions

        In production mode, error details are hidden.
        """
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(include_details=settings.DEBUG),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """
        Handle uncaught exceptions

        Stack traces are logged, and only returned to clients in debug mode.
        """
        logger.error(
            "Uncaught exception: %s\nPath: %s\nTraceback:\n%s",
            str(exc),
            request.url.path,
            traceback.format_exc(),
        )
        error = {
            "message": "Internal server error",
            "type": "internal_error",
            "code": "internal_error",
        }
        if settings.DEBUG:
            error["message"] = str(exc)
            error["traceback"] = traceback.format_exc().split("\n")
        return JSONResponse(status_code=500, content={"error": error})

    # Health first: the proxy route catches every other path
    app.include_router(health_router)
    app.include_router(proxy_router)

    return app


def run() -> None:
    """Run the proxy with uvicorn"""
    import uvicorn

    settings = get_settings()
    setup_logging(settings)
    uvicorn.run(
        "rewrite_proxy.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
