"""
Body Encoding Module

Converts HTTP bodies to and from the supported content-encodings:
identity, gzip, deflate and brotli.
"""

from __future__ import annotations

import gzip
import zlib
from enum import Enum

import brotli

from rewrite_proxy.common.errors import DecodeError


class ContentEncoding(str, Enum):
    """Supported Content-Encoding values"""

    IDENTITY = "identity"
    GZIP = "gzip"
    DEFLATE = "deflate"
    BR = "br"

    @classmethod
    def parse(cls, value: str | ContentEncoding | None) -> ContentEncoding:
        """
        Parse a Content-Encoding header value

        Unknown or absent values are treated as identity.

        Args:
            value: Header value, enum member or None

        Returns:
            ContentEncoding: Parsed encoding
        """
        if isinstance(value, ContentEncoding):
            return value
        if not value:
            return cls.IDENTITY
        normalized = value.strip().lower()
        if normalized == "x-gzip":
            return cls.GZIP
        try:
            return cls(normalized)
        except ValueError:
            return cls.IDENTITY


def decode(data: bytes, encoding: str | ContentEncoding | None) -> bytes:
    """
    Decode a body according to its declared content-encoding

    Args:
        data: Encoded body bytes
        encoding: Declared encoding

    Returns:
        bytes: Decoded body

    Raises:
        DecodeError: The bytes are not valid for the declared encoding
    """
    scheme = ContentEncoding.parse(encoding)
    if scheme is ContentEncoding.IDENTITY:
        return data

    try:
        if scheme is ContentEncoding.GZIP:
            return gzip.decompress(data)
        if scheme is ContentEncoding.DEFLATE:
            return _inflate(data)
        return brotli.decompress(data)
    except (OSError, EOFError, zlib.error, brotli.error) as e:
        raise DecodeError(scheme.value, str(e) or type(e).__name__) from e


def encode(data: bytes, encoding: str | ContentEncoding | None) -> bytes:
    """
    Encode a body with the given content-encoding

    Args:
        data: Plain body bytes
        encoding: Target encoding

    Returns:
        bytes: Encoded body
    """
    scheme = ContentEncoding.parse(encoding)
    if scheme is ContentEncoding.GZIP:
        return gzip.compress(data)
    if scheme is ContentEncoding.DEFLATE:
        return zlib.compress(data)
    if scheme is ContentEncoding.BR:
        return brotli.compress(data)
    return data


def _inflate(data: bytes) -> bytes:
    # Servers send both zlib-wrapped and raw deflate streams
    try:
        return zlib.decompress(data)
    except zlib.error:
        return zlib.decompress(data, -zlib.MAX_WBITS)
