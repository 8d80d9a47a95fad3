"""
Rewrite Rule Model Module

Defines the data structure used by the rewrite engine.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

Replacement = Union[str, Callable[["re.Match[str]"], str]]


@dataclass(frozen=True)
class RewriteRule:
    """
    Rewrite Rule

    A single deterministic text substitution.

    Attributes:
        name: Rule identifier, used in logs and errors
        pattern: Literal text, or a regular expression when ``regex`` is set
        replacement: Replacement text, or a callable producing it from the match.
            Literal rules insert the text verbatim; regex rules expand group references.
        regex: Whether ``pattern`` is a regular expression
        applies_globally: Replace every non-overlapping occurrence (otherwise only the first)
    """

    name: str
    pattern: str
    replacement: Replacement
    regex: bool = False
    applies_globally: bool = True
    compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        source = self.pattern if self.regex else re.escape(self.pattern)
        object.__setattr__(self, "compiled", re.compile(source))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RewriteRule:
        """
        Create a rule from a dictionary

        Args:
            data: Rule mapping, e.g.
                {"name": "usd", "pattern": "$0.00", "replacement": "$1000.00", "regex": false}

        Returns:
            RewriteRule: Rule instance

        Raises:
            ValueError: Missing pattern or invalid regular expression
        """
        pattern = data.get("pattern")
        if not pattern:
            raise ValueError("rewrite rule requires a non-empty 'pattern'")
        try:
            return cls(
                name=data.get("name") or pattern,
                pattern=pattern,
                replacement=data.get("replacement", ""),
                regex=bool(data.get("regex", False)),
                applies_globally=bool(data.get("global", True)),
            )
        except re.error as e:
            raise ValueError(f"invalid rewrite pattern {pattern!r}: {e}") from e

    def apply(self, text: str) -> str:
        """Apply this rule to ``text`` and return the result."""
        count = 0 if self.applies_globally else 1
        replacement = self.replacement
        if isinstance(replacement, str) and not self.regex:
            # Literal replacement, no backslash or group expansion
            literal = replacement
            replacement = lambda _match: literal  # noqa: E731
        return self.compiled.sub(replacement, text, count=count)
