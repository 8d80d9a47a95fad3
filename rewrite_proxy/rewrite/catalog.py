"""
Built-in Rewrite Rules

The default catalog applied to intercepted HTML. Rules run in list order.
"""

from collections.abc import Iterable
from typing import Any

from rewrite_proxy.rewrite.models import RewriteRule

CURRENCY_CALL = "formatCurrency('GBP', '£', '0.00', '{2}{3}')"
CURRENCY_CALL_REWRITTEN = "formatCurrency('GBP', '£', '1000.00', '{2}{3}')"

ZERO_BALANCE = "£0.00"
ZERO_BALANCE_REWRITTEN = "£1000.00"


def default_rules() -> list[RewriteRule]:
    """Return the built-in rule catalog."""
    return [
        RewriteRule(
            name="currency-call",
            pattern=CURRENCY_CALL,
            replacement=CURRENCY_CALL_REWRITTEN,
        ),
        RewriteRule(
            name="zero-balance",
            pattern=ZERO_BALANCE,
            replacement=ZERO_BALANCE_REWRITTEN,
        ),
    ]


def build_rules(
    extra: Iterable[dict[str, Any]] = (),
    include_defaults: bool = True,
) -> list[RewriteRule]:
    """
    Assemble the rule catalog used at runtime

    Args:
        extra: Rule mappings from configuration, appended in order
        include_defaults: Start from the built-in catalog

    Returns:
        list[RewriteRule]: Ordered rule list

    Raises:
        ValueError: A configured rule is invalid
    """
    rules = default_rules() if include_defaults else []
    rules.extend(RewriteRule.from_dict(item) for item in extra)
    return rules
