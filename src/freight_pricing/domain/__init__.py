"""Domain types, models, and errors for freight pricing."""

from freight_pricing.domain.errors import (
    FreightPricingError,
    InvalidInputError,
    QuoteStoreError,
    RuleConfigurationError,
)
from freight_pricing.domain.models import (
    BreakdownLine,
    PriceCalculation,
    QuoteRequest,
    RateRule,
    format_money,
)
from freight_pricing.domain.types import (
    URGENCY_FACTORS,
    ChargeComponent,
    QuoteStatus,
    Urgency,
    get_urgency_factor,
)

__all__ = [
    "URGENCY_FACTORS",
    "BreakdownLine",
    "ChargeComponent",
    "FreightPricingError",
    "InvalidInputError",
    "PriceCalculation",
    "QuoteRequest",
    "QuoteStatus",
    "QuoteStoreError",
    "RateRule",
    "RuleConfigurationError",
    "Urgency",
    "format_money",
    "get_urgency_factor",
]
