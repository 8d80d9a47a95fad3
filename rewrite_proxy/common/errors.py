"""
Error Definitions

Defines custom exception classes used by the proxy.

Two families exist:
- AppError subclasses are surfaced to the client by the FastAPI exception handler.
- TransformError subclasses are recovered locally (fallback passthrough or degraded body)
  and never reach the client.
"""

from typing import Any, Optional


class AppError(Exception):
    """
    Application Base Exception

    Base class for client-visible errors, containing error message, type, and code.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "app_error",
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            error_type: Error type
            code: Error code
            details: Extra error details
            status_code: HTTP status code
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.code = code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        """
        Convert to dictionary format (for API response)

        Args:
            include_details: Whether to add the details mapping

        Returns:
            dict: Error information dictionary
        """
        result = {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }
        if include_details and self.details:
            result["error"]["details"] = self.details
        return result


class UpstreamUnreachable(AppError):
    """
    Upstream Unreachable Error

    Raised when the connection to the upstream target fails or times out.
    Reported as 502, or 504 when the failure was a timeout. Never retried.
    """

    def __init__(
        self,
        message: str = "Upstream unreachable",
        code: str = "upstream_unreachable",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 502,
    ):
        super().__init__(
            message=message,
            error_type="upstream_error",
            code=code,
            details=details,
            status_code=status_code,
        )


class TransformError(Exception):
    """Base class for errors recovered inside the proxy."""


class DecodeError(TransformError):
    """Body bytes do not match the declared content-encoding."""

    def __init__(self, encoding: str, reason: str):
        super().__init__(f"cannot decode body as {encoding}: {reason}")
        self.encoding = encoding
        self.reason = reason


class RewriteError(TransformError):
    """Text transformation failed after a successful decode."""

    def __init__(self, message: str, rule: Optional[str] = None):
        super().__init__(message)
        self.rule = rule


class BodyReencodeError(TransformError):
    """A parsed request body could not be serialized back to wire format."""

    def __init__(self, content_type: str, reason: str):
        super().__init__(f"cannot serialize body as {content_type}: {reason}")
        self.content_type = content_type
        self.reason = reason
