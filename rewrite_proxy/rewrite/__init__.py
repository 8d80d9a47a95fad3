"""
Rewrite Engine Package

Data-driven text substitution for intercepted HTML responses.
"""

from rewrite_proxy.rewrite.catalog import build_rules, default_rules
from rewrite_proxy.rewrite.engine import RewriteEngine
from rewrite_proxy.rewrite.models import RewriteRule

__all__ = [
    "RewriteRule",
    "RewriteEngine",
    "default_rules",
    "build_rules",
]
