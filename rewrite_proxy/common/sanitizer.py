"""
Data Sanitization Module

Masks credentials in request headers and trims bodies so request logs
never carry secrets or unbounded payloads.
"""

from collections.abc import Iterable
from typing import Any

SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization", "x-api-key", "api-key", "cookie"})


def mask_value(value: str) -> str:
    """
    Mask a secret header value

    Keeps a short prefix for identification. "Bearer" and "Basic" schemes are preserved.

    Examples:
        >>> mask_value("Bearer sk-1234567890abcdef")
        'Bearer sk-1***'
        >>> mask_value("short")
        '***'
    """
    if not value:
        return value

    prefix = ""
    token = value
    scheme, sep, rest = value.partition(" ")
    if sep and scheme.lower() in ("bearer", "basic"):
        prefix = f"{scheme} "
        token = rest

    if len(token) <= 8:
        return f"{prefix}***"
    return f"{prefix}{token[:4]}***"


def sanitize_headers(headers: Iterable[tuple[str, str]]) -> dict[str, str]:
    """
    Sanitize request headers for logging

    Args:
        headers: Header pairs

    Returns:
        dict: Header mapping with sensitive values masked; repeated fields are joined with ", "
    """
    sanitized: dict[str, str] = {}
    for name, value in headers:
        key = name.lower()
        if key in SENSITIVE_HEADERS:
            value = mask_value(value)
        if key in sanitized:
            sanitized[key] = f"{sanitized[key]}, {value}"
        else:
            sanitized[key] = value
    return sanitized


def truncate_for_log(data: Any, max_length: int) -> str:
    """Render ``data`` for a log line, cut to ``max_length`` characters."""
    text = data if isinstance(data, str) else repr(data)
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}...[truncated]"
