"""
Proxy header utilities.

Headers are carried as ordered lists of (name, value) pairs so repeated fields such as
Set-Cookie survive the trip through the proxy. Hop-by-hop headers describe a single
transport connection and are never forwarded in either direction.
"""

from __future__ import annotations

from collections.abc import Iterable

HeaderList = list[tuple[str, str]]

# RFC 7230 hop-by-hop headers
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

INTERCEPT_CONTENT_TYPE = "text/html; charset=utf-8"


def _connection_tokens(headers: Iterable[tuple[str, str]]) -> set[str]:
    # Connection may nominate additional per-hop headers
    tokens: set[str] = set()
    for name, value in headers:
        if name.lower() == "connection":
            tokens.update(t.strip().lower() for t in value.split(",") if t.strip())
    return tokens


def strip_hop_by_hop(headers: Iterable[tuple[str, str]]) -> HeaderList:
    """
    Remove hop-by-hop headers, including the ones nominated by Connection.

    Args:
        headers: Header pairs

    Returns:
        HeaderList: New list without hop-by-hop headers, original order kept
    """
    pairs = list(headers)
    drop = HOP_BY_HOP_HEADERS | _connection_tokens(pairs)
    return [(name, value) for name, value in pairs if name.lower() not in drop]


def without(headers: Iterable[tuple[str, str]], *names: str) -> HeaderList:
    """Return the header pairs minus every field named in ``names``."""
    drop = {name.lower() for name in names}
    return [(name, value) for name, value in headers if name.lower() not in drop]


def get_header(headers: Iterable[tuple[str, str]], name: str) -> str | None:
    """Return the first value of ``name`` (case-insensitive) or None."""
    wanted = name.lower()
    for key, value in headers:
        if key.lower() == wanted:
            return value
    return None


def build_upstream_request_headers(
    headers: Iterable[tuple[str, str]],
    upstream_host: str,
) -> HeaderList:
    """
    Prepare inbound request headers for forwarding upstream.

    Host is replaced by the upstream host (origin rewriting). Content-Length is removed;
    the caller re-adds it when the body is forwarded unchanged, otherwise the HTTP client
    computes it from the outgoing body.

    Args:
        headers: Inbound request header pairs
        upstream_host: Upstream "host[:port]"

    Returns:
        HeaderList: Headers to send upstream
    """
    forwarded = without(strip_hop_by_hop(headers), "host", "content-length")
    forwarded.insert(0, ("host", upstream_host))
    return forwarded


def build_passthrough_headers(headers: Iterable[tuple[str, str]]) -> HeaderList:
    """
    Headers for a response streamed through verbatim.

    Only hop-by-hop fields are dropped; Content-Length and Content-Encoding still describe
    the raw bytes being relayed.
    """
    return strip_hop_by_hop(headers)


def build_intercept_headers(headers: Iterable[tuple[str, str]]) -> HeaderList:
    """
    Headers for a rewritten response.

    The body is re-emitted as uncompressed UTF-8 HTML, so Content-Encoding and
    Content-Length are dropped and Content-Type is forced. The caller appends the
    exact Content-Length of the emitted body.
    """
    rebuilt = without(strip_hop_by_hop(headers), "content-encoding", "content-length", "content-type")
    rebuilt.append(("content-type", INTERCEPT_CONTENT_TYPE))
    return rebuilt


def encode_raw_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    """Encode header pairs into the ASGI raw header representation."""
    return [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers]
