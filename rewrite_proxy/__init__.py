"""
Rewrite Proxy

Reverse proxy that rewrites HTML responses on a designated path and passes
all other traffic through byte-for-byte.
"""

__version__ = "0.1.0"
