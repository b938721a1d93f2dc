"""Domain enumerations for freight quoting."""

from decimal import Decimal
from enum import StrEnum


class Urgency(StrEnum):
    """Requested delivery speed tier."""

    STANDARD = "standard"
    EXPRESS = "express"
    URGENT = "urgent"


class ChargeComponent(StrEnum):
    """Named line items of a price breakdown, in display order."""

    BASE_PRICE = "base_price"
    WEIGHT_CHARGE = "weight_charge"
    DISTANCE_CHARGE = "distance_charge"
    URGENCY_CHARGE = "urgency_charge"
    FUEL_SURCHARGE = "fuel_surcharge"
    SEASONAL_ADJUSTMENT = "seasonal_adjustment"
    VOLUME_DISCOUNT = "volume_discount"
    TAXES = "taxes"


class QuoteStatus(StrEnum):
    """Lifecycle of a saved quote."""

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Multiplier applied to the base price per urgency tier
URGENCY_FACTORS: dict[Urgency, Decimal] = {
    Urgency.STANDARD: Decimal("1.0"),
    Urgency.EXPRESS: Decimal("1.3"),
    Urgency.URGENT: Decimal("1.6"),
}


def get_urgency_factor(urgency: Urgency) -> Decimal:
    """Look up the base-price multiplier for an urgency tier.

    Args:
        urgency: The requested urgency tier.

    Returns:
        The multiplier (1.0 for standard).

    Raises:
        ValueError: If the urgency tier has no configured factor.
    """
    try:
        return URGENCY_FACTORS[Urgency(urgency)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown urgency tier: {urgency}") from None
