"""Tests for the rule-based freight price calculation engine."""

from decimal import Decimal

import pytest

from freight_pricing.domain.errors import InvalidInputError, RuleConfigurationError
from freight_pricing.domain.models import QuoteRequest, RateRule
from freight_pricing.domain.types import ChargeComponent, Urgency
from freight_pricing.pricing.engine import (
    DEFAULT_TAX_RATE,
    calculate_price,
    select_rate_rule,
)


def _request(**overrides) -> QuoteRequest:
    fields = {
        "service_type": "ground",
        "weight": Decimal("1000"),
        "distance": Decimal("500"),
        "volume": Decimal("0"),
    }
    fields.update(overrides)
    return QuoteRequest(**fields)


class TestReferenceScenarios:
    """Worked ground-freight examples with exact expected amounts."""

    def test_standard_ground_quote(self, ground_rule: RateRule, ground_request: QuoteRequest):
        result = calculate_price(ground_request, [ground_rule])

        assert result is not None
        assert result.base_price == Decimal("300")
        assert result.weight_charge == Decimal("500")
        assert result.distance_charge == Decimal("600")
        assert result.urgency_charge == Decimal("0")
        assert result.fuel_surcharge == Decimal("210")
        assert result.seasonal_adjustment == Decimal("0")
        assert result.volume_discount == Decimal("0")
        assert result.subtotal == Decimal("1610")
        assert result.taxes == Decimal("128.8")
        assert result.total_price == Decimal("1738.8")

    def test_volume_at_threshold_gets_discount(self, ground_rule: RateRule):
        result = calculate_price(_request(volume=Decimal("10000")), [ground_rule])

        assert result is not None
        # 10% of the 1400 pre-adjustment subtotal
        assert result.volume_discount == Decimal("140")
        assert result.subtotal == Decimal("1470")
        assert result.taxes == Decimal("117.6")
        assert result.total_price == Decimal("1587.6")

    def test_air_rule_applies_seasonal_surcharge(self, sample_rules: list[RateRule]):
        request = _request(service_type="air", weight=Decimal("100"), distance=Decimal("1000"))
        result = calculate_price(request, sample_rules)

        assert result is not None
        assert result.rule_id == "2"
        # 500 + 200 + 800 = 1500 pre-adjustment; +25% fuel, +10% seasonal
        assert result.fuel_surcharge == Decimal("375")
        assert result.seasonal_adjustment == Decimal("150")
        assert result.subtotal == Decimal("2025")
        assert result.total_price == Decimal("2187")

    def test_ocean_rule_applies_seasonal_discount(self, sample_rules: list[RateRule]):
        request = _request(service_type="ocean", weight=Decimal("0"), distance=Decimal("0"))
        result = calculate_price(request, sample_rules)

        assert result is not None
        assert result.seasonal_adjustment == Decimal("-75")
        assert result.subtotal == Decimal("1575")
        assert result.total_price == Decimal("1701")


class TestUrgency:
    """Tests for the fixed urgency factor table."""

    @pytest.mark.parametrize(
        ("urgency", "expected_charge"),
        [
            (Urgency.STANDARD, Decimal("0")),
            (Urgency.EXPRESS, Decimal("90")),
            (Urgency.URGENT, Decimal("180")),
        ],
        ids=["standard", "express", "urgent"],
    )
    def test_urgency_charge_scales_base_price(
        self, ground_rule: RateRule, urgency: Urgency, expected_charge: Decimal
    ):
        result = calculate_price(_request(urgency=urgency), [ground_rule])
        assert result is not None
        assert result.urgency_charge == expected_charge

    def test_express_charge_flows_into_subtotal(self, ground_rule: RateRule):
        result = calculate_price(_request(urgency=Urgency.EXPRESS), [ground_rule])

        assert result is not None
        # 1400 + 90 = 1490 pre-adjustment, +15% fuel
        assert result.subtotal == Decimal("1713.5")
        assert result.total_price == Decimal("1850.58")

    @pytest.mark.parametrize(
        "weight",
        [Decimal("0"), Decimal("1"), Decimal("2500.5"), Decimal("100000")],
        ids=["zero", "one", "fractional", "large"],
    )
    def test_standard_urgency_never_charges(self, ground_rule: RateRule, weight: Decimal):
        result = calculate_price(_request(weight=weight), [ground_rule])
        assert result is not None
        assert result.urgency_charge == Decimal("0")

    def test_rule_urgency_multiplier_is_not_consulted(self, ground_rule: RateRule):
        custom = ground_rule.model_copy(update={"urgency_multiplier": Decimal("5")})
        baseline = calculate_price(_request(urgency=Urgency.EXPRESS), [ground_rule])
        result = calculate_price(_request(urgency=Urgency.EXPRESS), [custom])

        assert baseline is not None and result is not None
        assert result.total_price == baseline.total_price


class TestVolumeDiscount:
    """Tests for the inclusive volume discount threshold."""

    def test_one_unit_below_threshold_has_no_discount(self, ground_rule: RateRule):
        result = calculate_price(_request(volume=Decimal("9999")), [ground_rule])
        assert result is not None
        assert result.volume_discount == Decimal("0")

    def test_above_threshold_discount_uses_pre_adjustment_subtotal(self, ground_rule: RateRule):
        result = calculate_price(_request(volume=Decimal("50000")), [ground_rule])
        assert result is not None
        # Not 10% of the post-surcharge amount (1610)
        assert result.volume_discount == Decimal("140")


class TestTaxes:
    """Tests for the tax step and the configurable tax rate."""

    @pytest.mark.parametrize(
        "volume",
        [Decimal("0"), Decimal("9999"), Decimal("10000"), Decimal("12345.67")],
        ids=["no_volume", "below_threshold", "at_threshold", "above_threshold"],
    )
    def test_total_is_subtotal_plus_default_tax(self, ground_rule: RateRule, volume: Decimal):
        result = calculate_price(_request(volume=volume), [ground_rule])
        assert result is not None
        assert result.tax_rate == DEFAULT_TAX_RATE
        assert result.total_price == result.subtotal * Decimal("1.08")

    def test_custom_tax_rate(self, ground_rule: RateRule, ground_request: QuoteRequest):
        result = calculate_price(ground_request, [ground_rule], tax_rate=Decimal("0.1"))
        assert result is not None
        assert result.taxes == Decimal("161")
        assert result.total_price == Decimal("1771")

    def test_zero_tax_rate(self, ground_rule: RateRule, ground_request: QuoteRequest):
        result = calculate_price(ground_request, [ground_rule], tax_rate=Decimal("0"))
        assert result is not None
        assert result.taxes == Decimal("0")
        assert result.total_price == result.subtotal


class TestRuleSelection:
    """Tests for active-rule lookup and the not-applicable result."""

    def test_unknown_service_type_returns_none(self, sample_rules: list[RateRule]):
        assert calculate_price(_request(service_type="rail"), sample_rules) is None

    def test_empty_rule_set_returns_none(self, ground_request: QuoteRequest):
        assert calculate_price(ground_request, []) is None

    def test_inactive_rule_is_ignored(self, ground_rule: RateRule, ground_request: QuoteRequest):
        inactive = ground_rule.model_copy(update={"active": False})
        assert calculate_price(ground_request, [inactive]) is None

    def test_active_rule_selected_over_inactive_one(self, ground_rule: RateRule):
        inactive = ground_rule.model_copy(
            update={"id": "old", "base_price": Decimal("9999"), "active": False}
        )
        selected = select_rate_rule([inactive, ground_rule], "ground")
        assert selected == ground_rule

    def test_multiple_active_rules_raise(self, ground_rule: RateRule, ground_request: QuoteRequest):
        duplicate = ground_rule.model_copy(update={"id": "1b"})
        with pytest.raises(RuleConfigurationError, match="Multiple active rate rules"):
            calculate_price(ground_request, [ground_rule, duplicate])

    def test_duplicates_for_other_service_types_do_not_block(
        self, ground_rule: RateRule, ground_request: QuoteRequest, sample_rules: list[RateRule]
    ):
        air = next(r for r in sample_rules if r.service_type == "air")
        rules = [ground_rule, air, air.model_copy(update={"id": "2b"})]
        assert calculate_price(ground_request, rules) is not None

    def test_accepts_any_iterable_of_rules(
        self, ground_rule: RateRule, ground_request: QuoteRequest
    ):
        result = calculate_price(ground_request, (r for r in [ground_rule]))
        assert result is not None


class TestInvalidInput:
    """Tests for rejection of negative shipment quantities."""

    @pytest.mark.parametrize("field", ["weight", "distance", "volume"])
    def test_negative_quantity_raises(self, ground_rule: RateRule, field: str):
        request = _request(**{field: Decimal("-1")})
        with pytest.raises(InvalidInputError, match=f"{field} must not be negative") as exc_info:
            calculate_price(request, [ground_rule])
        assert exc_info.value.field == field
        assert exc_info.value.value == Decimal("-1")

    def test_negative_quantity_rejected_even_without_matching_rule(self):
        with pytest.raises(InvalidInputError):
            calculate_price(_request(service_type="rail", weight=Decimal("-5")), [])


class TestDegenerateRules:
    """Rule configurations that drive the subtotal below zero are not engine errors."""

    def test_negative_subtotal_is_not_clamped(self):
        rule = RateRule(
            service_type="ground",
            base_price=Decimal("100"),
            weight_multiplier=Decimal("0"),
            distance_multiplier=Decimal("0"),
            volume_discount_threshold=Decimal("0"),
            volume_discount_rate=Decimal("0.5"),
            fuel_surcharge=Decimal("0"),
            seasonal_adjustment=Decimal("0"),
        )
        result = calculate_price(_request(weight=Decimal("0"), distance=Decimal("0")), [rule])

        assert result is not None
        assert result.subtotal == Decimal("-50")
        assert result.taxes == Decimal("-4")
        assert result.total_price == Decimal("-54")


class TestBreakdown:
    """Tests for the ordered, human-readable breakdown."""

    def test_breakdown_text_without_discount(
        self, ground_rule: RateRule, ground_request: QuoteRequest
    ):
        result = calculate_price(ground_request, [ground_rule])
        assert result is not None
        assert result.breakdown_text() == [
            "Base Price (Ground Transportation Standard): $300.00",
            "Weight Charge (1000 lbs × $0.5): $500.00",
            "Distance Charge (500 miles × $1.2): $600.00",
            "Urgency Charge (standard): $0.00",
            "Fuel Surcharge (15.0%): $210.00",
            "Seasonal Adjustment: $0.00",
            "Taxes (8%): $128.80",
        ]

    def test_breakdown_includes_discount_before_taxes(self, ground_rule: RateRule):
        result = calculate_price(_request(volume=Decimal("10000")), [ground_rule])
        assert result is not None
        components = [line.component for line in result.breakdown]
        assert components == list(ChargeComponent)
        assert result.breakdown_text()[6] == "Volume Discount (10.0%): -$140.00"
        assert result.breakdown_text()[7] == "Taxes (8%): $117.60"

    def test_zero_discount_line_is_omitted(self, ground_rule: RateRule, ground_request: QuoteRequest):
        result = calculate_price(ground_request, [ground_rule])
        assert result is not None
        components = [line.component for line in result.breakdown]
        assert ChargeComponent.VOLUME_DISCOUNT not in components
        assert len(components) == 7

    def test_negative_seasonal_adjustment_renders_with_minus(self, sample_rules: list[RateRule]):
        request = _request(service_type="ocean", weight=Decimal("0"), distance=Decimal("0"))
        result = calculate_price(request, sample_rules)
        assert result is not None
        assert "Seasonal Adjustment: -$75.00" in result.breakdown_text()

    def test_tax_label_follows_custom_rate(
        self, ground_rule: RateRule, ground_request: QuoteRequest
    ):
        result = calculate_price(ground_request, [ground_rule], tax_rate=Decimal("0.075"))
        assert result is not None
        assert result.breakdown_text()[-1].startswith("Taxes (7.5%): ")

    def test_unnamed_rule_labels_with_service_type(self, ground_rule: RateRule):
        unnamed = ground_rule.model_copy(update={"name": ""})
        result = calculate_price(_request(), [unnamed])
        assert result is not None
        assert result.breakdown_text()[0] == "Base Price (ground): $300.00"

    def test_very_heavy_shipment_renders(self, ground_rule: RateRule):
        result = calculate_price(_request(weight=Decimal("1e30")), [ground_rule])
        assert result is not None
        text = result.breakdown_text()
        assert text[1].endswith(": $5" + "0" * 29 + ".00")
        assert text[-1].startswith("Taxes (8%): $")


class TestPurity:
    """The engine keeps no state between calls."""

    def test_identical_inputs_give_identical_output(
        self, ground_rule: RateRule, ground_request: QuoteRequest
    ):
        first = calculate_price(ground_request, [ground_rule])
        second = calculate_price(ground_request, [ground_rule])
        assert first == second
        assert first is not None and second is not None
        assert first.model_dump_json() == second.model_dump_json()

    def test_call_order_does_not_matter(self, ground_rule: RateRule):
        a = _request(volume=Decimal("10000"))
        b = _request(urgency=Urgency.URGENT)

        a_first = calculate_price(a, [ground_rule])
        calculate_price(b, [ground_rule])
        a_again = calculate_price(a, [ground_rule])

        assert a_first == a_again

    def test_inputs_are_not_modified(self, ground_rule: RateRule, ground_request: QuoteRequest):
        rules = [ground_rule]
        before = (ground_request.model_dump(), ground_rule.model_dump())
        calculate_price(ground_request, rules)
        assert rules == [ground_rule]
        assert (ground_request.model_dump(), ground_rule.model_dump()) == before
