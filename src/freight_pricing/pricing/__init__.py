"""Pricing engine for rule-based freight quotes.

Re-exports key functions and types for convenient access:
    from freight_pricing.pricing import calculate_price, load_rate_rules
"""

from freight_pricing.pricing.engine import (
    DEFAULT_TAX_RATE,
    calculate_price,
    select_rate_rule,
)
from freight_pricing.pricing.rate_rules import (
    SAMPLE_RATE_RULES,
    dump_rate_rules,
    load_rate_rules,
    update_rate_rule,
    validate_rate_rules,
)

__all__ = [
    "DEFAULT_TAX_RATE",
    "SAMPLE_RATE_RULES",
    "calculate_price",
    "dump_rate_rules",
    "load_rate_rules",
    "select_rate_rule",
    "update_rate_rule",
    "validate_rate_rules",
]
