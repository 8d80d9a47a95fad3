"""
Rewrite Engine Module

Applies an ordered list of text substitutions to decoded HTML.
The HTML is treated as an opaque string; nothing is parsed or validated.
"""

from collections.abc import Iterable

from rewrite_proxy.common.errors import RewriteError
from rewrite_proxy.rewrite.models import RewriteRule


class RewriteEngine:
    """
    Rewrite Engine

    Holds an immutable rule tuple built at startup, so a single instance is safely
    shared by all concurrent requests.
    """

    def __init__(self, rules: Iterable[RewriteRule]):
        self.rules: tuple[RewriteRule, ...] = tuple(rules)

    def rewrite(self, html: str) -> str:
        """
        Apply every rule, in order, to ``html``

        Args:
            html: Decoded document text

        Returns:
            str: Rewritten text

        Raises:
            RewriteError: A rule's replacement producer failed
        """
        for rule in self.rules:
            try:
                html = rule.apply(html)
            except Exception as e:
                raise RewriteError(f"rule {rule.name!r} failed: {e}", rule=rule.name) from e
        return html

    @property
    def rule_names(self) -> list[str]:
        return [rule.name for rule in self.rules]
