"""Pydantic v2 models for rate rules, quote requests, and price calculations."""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Context, Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from freight_pricing.domain.types import ChargeComponent, Urgency

# Display precision for monetary amounts
TWO_PLACES = Decimal("0.01")


def _coerce_decimal(v: object) -> object:
    """Route float inputs through ``str`` so 0.1 becomes exactly Decimal("0.1")."""
    if isinstance(v, float):
        return Decimal(str(v))
    return v


def format_money(amount: Decimal) -> str:
    """Render an amount as dollars with two decimal places, sign before the symbol."""
    # Precision must cover every integer digit plus the two places
    context = Context(prec=max(28, amount.adjusted() + 3))
    rounded = amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP, context=context)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded)}"


class RateRule(BaseModel):
    """Pricing configuration for a single service type.

    Rules are administrator-maintained configuration and are read-only to
    the pricing engine. ``urgency_multiplier`` is retained so stored rule
    records round-trip unchanged; urgency pricing uses
    :data:`freight_pricing.domain.types.URGENCY_FACTORS`.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    service_type: str
    base_price: Decimal = Field(ge=0)
    weight_multiplier: Decimal = Field(ge=0)
    distance_multiplier: Decimal = Field(ge=0)
    urgency_multiplier: Decimal = Decimal("1")
    volume_discount_threshold: Decimal = Field(ge=0)
    volume_discount_rate: Decimal = Field(ge=0, le=1)
    fuel_surcharge: Decimal = Field(ge=0, le=1)
    seasonal_adjustment: Decimal = Field(default=Decimal("1"), ge=0)
    active: bool = True
    last_updated: datetime | None = None

    @field_validator(
        "base_price",
        "weight_multiplier",
        "distance_multiplier",
        "urgency_multiplier",
        "volume_discount_threshold",
        "volume_discount_rate",
        "fuel_surcharge",
        "seasonal_adjustment",
        mode="before",
    )
    @classmethod
    def coerce_float_inputs(cls, v: object) -> object:
        """Convert float inputs (e.g. from YAML) to exact Decimals."""
        return _coerce_decimal(v)

    @field_validator("service_type")
    @classmethod
    def service_type_must_not_be_empty(cls, v: str) -> str:
        """Ensure service_type is not empty or whitespace-only."""
        if not v.strip():
            raise ValueError("service_type must not be empty")
        return v

    @property
    def display_name(self) -> str:
        """Rule name for breakdown labels, falling back to the service type."""
        return self.name or self.service_type


class QuoteRequest(BaseModel):
    """A transient shipment quote request.

    Numeric fields are not range-checked here; the pricing engine rejects
    negative quantities with :class:`~freight_pricing.domain.errors.InvalidInputError`.
    """

    model_config = ConfigDict(frozen=True)

    service_type: str
    weight: Decimal = Decimal("0")
    distance: Decimal = Decimal("0")
    urgency: Urgency = Urgency.STANDARD
    volume: Decimal = Decimal("0")
    origin: str = ""
    destination: str = ""
    special_requirements: list[str] = Field(default_factory=list)

    @field_validator("weight", "distance", "volume", mode="before")
    @classmethod
    def coerce_float_inputs(cls, v: object) -> object:
        """Convert float inputs to exact Decimals."""
        return _coerce_decimal(v)


class BreakdownLine(BaseModel, frozen=True):
    """One named charge in a price breakdown.

    Attributes:
        component: Which charge this line represents.
        label: Human-readable description, e.g. ``"Fuel Surcharge (15.0%)"``.
        amount: Signed amount; discounts are stored as positive values and
            rendered with a leading minus sign.
    """

    component: ChargeComponent
    label: str
    amount: Decimal

    def __str__(self) -> str:
        if self.component is ChargeComponent.VOLUME_DISCOUNT:
            return f"{self.label}: {format_money(-self.amount)}"
        return f"{self.label}: {format_money(self.amount)}"


class PriceCalculation(BaseModel, frozen=True):
    """Immutable result of pricing a quote request against a rate rule.

    All amounts are unrounded Decimals; round only for display.
    """

    service_type: str
    rule_id: str = ""
    base_price: Decimal
    weight_charge: Decimal
    distance_charge: Decimal
    urgency_charge: Decimal
    fuel_surcharge: Decimal
    seasonal_adjustment: Decimal
    volume_discount: Decimal
    subtotal: Decimal
    tax_rate: Decimal
    taxes: Decimal
    total_price: Decimal
    breakdown: tuple[BreakdownLine, ...]

    def breakdown_text(self) -> list[str]:
        """Render the breakdown as display strings in order."""
        return [str(line) for line in self.breakdown]
