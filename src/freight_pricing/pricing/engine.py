"""Rule-based freight price calculation engine.

All monetary calculations use Decimal arithmetic and are left unrounded;
rounding to two decimal places happens only when a breakdown is rendered.
The engine is a pure function of its inputs: it holds no state between
calls, so it can be invoked on every input change without coordination.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

import structlog

from freight_pricing.domain.errors import InvalidInputError, RuleConfigurationError
from freight_pricing.domain.models import (
    BreakdownLine,
    PriceCalculation,
    QuoteRequest,
    RateRule,
)
from freight_pricing.domain.types import ChargeComponent, get_urgency_factor

logger = structlog.get_logger()

# Fraction of the subtotal charged as tax
DEFAULT_TAX_RATE = Decimal("0.08")

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def _validate_request(request: QuoteRequest) -> None:
    """Reject negative shipment quantities.

    Args:
        request: The quote request to validate.

    Raises:
        InvalidInputError: If weight, distance, or volume is negative.
    """
    for field in ("weight", "distance", "volume"):
        value: Decimal = getattr(request, field)
        if value < ZERO:
            raise InvalidInputError(field, value)


def _format_percent(rate: Decimal, places: Decimal | None = None) -> str:
    """Render a fraction as a percentage string without a trailing ``%``."""
    pct = rate * HUNDRED
    if places is not None:
        return str(pct.quantize(places))
    return format(pct.normalize(), "f")


def select_rate_rule(rules: Iterable[RateRule], service_type: str) -> RateRule | None:
    """Find the active rate rule for a service type.

    Args:
        rules: Candidate rate rules.
        service_type: The requested service type key.

    Returns:
        The single active rule for ``service_type``, or ``None`` if no
        active rule matches.

    Raises:
        RuleConfigurationError: If more than one active rule matches.
    """
    matches = [r for r in rules if r.active and r.service_type == service_type]
    if len(matches) > 1:
        ids = ", ".join(r.id or r.display_name for r in matches)
        raise RuleConfigurationError(
            f"Multiple active rate rules for service type '{service_type}': {ids}"
        )
    return matches[0] if matches else None


def _build_breakdown(
    request: QuoteRequest,
    rule: RateRule,
    charges: dict[ChargeComponent, Decimal],
    tax_rate: Decimal,
) -> tuple[BreakdownLine, ...]:
    labels = {
        ChargeComponent.BASE_PRICE: f"Base Price ({rule.display_name})",
        ChargeComponent.WEIGHT_CHARGE: (
            f"Weight Charge ({request.weight} lbs × ${rule.weight_multiplier})"
        ),
        ChargeComponent.DISTANCE_CHARGE: (
            f"Distance Charge ({request.distance} miles × ${rule.distance_multiplier})"
        ),
        ChargeComponent.URGENCY_CHARGE: f"Urgency Charge ({request.urgency})",
        ChargeComponent.FUEL_SURCHARGE: (
            f"Fuel Surcharge ({_format_percent(rule.fuel_surcharge, Decimal('0.1'))}%)"
        ),
        ChargeComponent.SEASONAL_ADJUSTMENT: "Seasonal Adjustment",
        ChargeComponent.VOLUME_DISCOUNT: (
            f"Volume Discount ({_format_percent(rule.volume_discount_rate, Decimal('0.1'))}%)"
        ),
        ChargeComponent.TAXES: f"Taxes ({_format_percent(tax_rate)}%)",
    }

    lines: list[BreakdownLine] = []
    for component in ChargeComponent:
        amount = charges[component]
        # A zero volume discount is left out of the breakdown entirely
        if component is ChargeComponent.VOLUME_DISCOUNT and amount == ZERO:
            continue
        lines.append(BreakdownLine(component=component, label=labels[component], amount=amount))
    return tuple(lines)


def calculate_price(
    request: QuoteRequest,
    rules: Iterable[RateRule],
    tax_rate: Decimal = DEFAULT_TAX_RATE,
) -> PriceCalculation | None:
    """Price a quote request against a set of rate rules.

    Pipeline:
    1. Select the single active rule for the request's service type.
    2. Linear charges: weight, distance, and urgency (base price scaled by
       the urgency factor minus one).
    3. Pre-adjustment subtotal = base + weight + distance + urgency.
    4. Fuel surcharge, seasonal adjustment, and volume discount, each a
       fraction of the pre-adjustment subtotal. The discount applies when
       volume is at or above the rule's threshold.
    5. Subtotal = pre-adjustment + fuel + seasonal - discount (never clamped).
    6. Taxes = subtotal * tax_rate; total = subtotal + taxes.

    Args:
        request: The shipment quote request.
        rules: Available rate rules; only active ones are considered.
        tax_rate: Fraction of the subtotal charged as tax. Defaults to 8%.

    Returns:
        The PriceCalculation, or ``None`` when no active rule matches the
        requested service type. Callers must not display a price for ``None``.

    Raises:
        InvalidInputError: If weight, distance, or volume is negative.
        RuleConfigurationError: If several active rules share the service type.
    """
    _validate_request(request)

    rule = select_rate_rule(rules, request.service_type)
    if rule is None:
        logger.info("rate_rule_not_found", service_type=request.service_type)
        return None

    urgency_factor = get_urgency_factor(request.urgency)

    base_price = rule.base_price
    weight_charge = request.weight * rule.weight_multiplier
    distance_charge = request.distance * rule.distance_multiplier
    urgency_charge = base_price * (urgency_factor - ONE)

    pre_adjustment = base_price + weight_charge + distance_charge + urgency_charge
    fuel_surcharge = pre_adjustment * rule.fuel_surcharge
    seasonal_adjustment = pre_adjustment * (rule.seasonal_adjustment - ONE)

    volume_discount = ZERO
    if request.volume >= rule.volume_discount_threshold:
        volume_discount = pre_adjustment * rule.volume_discount_rate

    subtotal = pre_adjustment + fuel_surcharge + seasonal_adjustment - volume_discount
    taxes = subtotal * tax_rate
    total_price = subtotal + taxes

    charges = {
        ChargeComponent.BASE_PRICE: base_price,
        ChargeComponent.WEIGHT_CHARGE: weight_charge,
        ChargeComponent.DISTANCE_CHARGE: distance_charge,
        ChargeComponent.URGENCY_CHARGE: urgency_charge,
        ChargeComponent.FUEL_SURCHARGE: fuel_surcharge,
        ChargeComponent.SEASONAL_ADJUSTMENT: seasonal_adjustment,
        ChargeComponent.VOLUME_DISCOUNT: volume_discount,
        ChargeComponent.TAXES: taxes,
    }

    calculation = PriceCalculation(
        service_type=rule.service_type,
        rule_id=rule.id,
        base_price=base_price,
        weight_charge=weight_charge,
        distance_charge=distance_charge,
        urgency_charge=urgency_charge,
        fuel_surcharge=fuel_surcharge,
        seasonal_adjustment=seasonal_adjustment,
        volume_discount=volume_discount,
        subtotal=subtotal,
        tax_rate=tax_rate,
        taxes=taxes,
        total_price=total_price,
        breakdown=_build_breakdown(request, rule, charges, tax_rate),
    )

    if subtotal < ZERO:
        logger.warning(
            "negative_subtotal",
            rule_id=rule.id,
            service_type=rule.service_type,
            subtotal=str(subtotal),
        )

    logger.debug(
        "price_calculated",
        service_type=rule.service_type,
        rule_id=rule.id,
        total_price=str(total_price),
    )
    return calculation
