"""
Configuration Management Module

Configures proxy parameters via environment variables or .env file.
Values are read once at startup and handed to components through their constructors.
"""

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "img-src 'self' data:",
        "style-src 'self' 'unsafe-inline' https://netdna.bootstrapcdn.com https://use.fontawesome.com",
        "script-src 'self' 'unsafe-inline' https://www.google.com https://www.gstatic.com",
        "connect-src 'self' http://localhost:8080",
        "frame-src https://www.google.com",
    ]
)


class Settings(BaseSettings):
    """
    Application Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "Rewrite Proxy"
    DEBUG: bool = False

    # Listener Config
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Upstream Config
    # Base URL every proxied request is forwarded to
    TARGET: str = "https://tsuk.claim.cards"
    # Upstream timeout (seconds) applied separately to each read, write and pool wait, not a total
    HTTP_TIMEOUT: float = 30.0
    # Connect timeout (seconds)
    HTTP_CONNECT_TIMEOUT: float = 10.0

    # Rewrite Config
    # Only HTML responses under this path prefix are rewritten
    REWRITE_PATH_PREFIX: str = "/cardInfo"
    # Keep the built-in rule catalog (extra rules are appended after it)
    REWRITE_DEFAULT_RULES: bool = True
    # Extra rules as a JSON list, e.g.
    # [{"name": "usd", "pattern": "$0.00", "replacement": "$1000.00"}]
    REWRITE_RULES: list[dict[str, Any]] = Field(default_factory=list)

    # Request Body Config
    # Forward the raw bytes captured by the body parser instead of re-serializing the parsed body
    FORWARD_RAW_BODY: bool = False

    # Security Header Config
    # Off by default so passthrough headers stay identical to the upstream
    CSP_ENABLED: bool = False
    CONTENT_SECURITY_POLICY: str = DEFAULT_CONTENT_SECURITY_POLICY

    # Request Logging Config
    LOG_REQUESTS: bool = True
    # Parsed bodies longer than this are truncated in logs
    LOG_BODY_MAX_LENGTH: int = 2000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application configuration (Singleton)

    Uses lru_cache to ensure configuration is loaded only once.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
