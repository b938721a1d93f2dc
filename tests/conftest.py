"""Shared pytest fixtures for the freight pricing test suite."""

import logging
from collections.abc import Iterator
from decimal import Decimal

import pytest
import structlog

from freight_pricing.domain.models import QuoteRequest, RateRule
from freight_pricing.domain.types import Urgency
from freight_pricing.pricing.rate_rules import SAMPLE_RATE_RULES


@pytest.fixture(autouse=True)
def _quiet_structlog() -> Iterator[None]:
    """Drop log output below CRITICAL so it never mixes with captured stdout."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))
    yield
    structlog.reset_defaults()


@pytest.fixture
def ground_rule() -> RateRule:
    """The reference ground rule used by the pricing scenarios."""
    return RateRule(
        id="1",
        name="Ground Transportation Standard",
        service_type="ground",
        base_price=Decimal("300"),
        weight_multiplier=Decimal("0.5"),
        distance_multiplier=Decimal("1.2"),
        volume_discount_threshold=Decimal("10000"),
        volume_discount_rate=Decimal("0.1"),
        fuel_surcharge=Decimal("0.15"),
        seasonal_adjustment=Decimal("1.0"),
    )


@pytest.fixture
def sample_rules() -> list[RateRule]:
    """The four built-in sample rules (ground, air, ocean, specialized)."""
    return list(SAMPLE_RATE_RULES)


@pytest.fixture
def ground_request() -> QuoteRequest:
    """A standard-urgency ground shipment: 1000 lbs over 500 miles, no volume."""
    return QuoteRequest(
        service_type="ground",
        weight=Decimal("1000"),
        distance=Decimal("500"),
        urgency=Urgency.STANDARD,
        volume=Decimal("0"),
        origin="Dallas, TX",
        destination="Denver, CO",
    )
