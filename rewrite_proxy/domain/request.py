"""
Proxy Request Domain Model
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from rewrite_proxy.common.content_type import ContentType
from rewrite_proxy.common.proxy_headers import HeaderList, get_header


@dataclass
class ProxyRequest:
    """
    Inbound Request Data Class

    Built once per inbound request by the proxy frontend and discarded when the
    response finishes.
    """

    # HTTP method, upper-case
    method: str
    # Request path, starting with "/"
    path: str
    # Raw query string without the leading "?"
    query: str = ""
    # Header pairs as received
    headers: HeaderList = field(default_factory=list)
    # Body parsed by the body parser middleware (JSON object or form fields)
    parsed_body: Optional[dict[str, Any]] = None
    # Raw body bytes kept by the body parser middleware
    raw_body: Optional[bytes] = None
    # Whether the inbound body stream was already read by a middleware
    body_consumed: bool = False

    @property
    def content_type(self) -> ContentType:
        return ContentType.parse(get_header(self.headers, "content-type"))

    @property
    def has_body_semantics(self) -> bool:
        """GET and HEAD requests never carry a forwarded body"""
        return self.method not in ("GET", "HEAD")

    @property
    def target(self) -> str:
        """Path plus query string, as sent on the request line"""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path
