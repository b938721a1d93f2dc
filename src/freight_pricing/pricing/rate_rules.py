"""Rate rule configuration: sample rules, YAML loading, validation, and edits.

Rules are configuration data maintained by an administrator. The engine only
reads them, so everything here returns new rule lists rather than mutating.

Expected YAML layout::

    rules:
      - id: "1"
        name: Ground Transportation Standard
        service_type: ground
        base_price: "300"
        weight_multiplier: "0.5"
        ...
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import structlog
import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from freight_pricing.domain.errors import RuleConfigurationError
from freight_pricing.domain.models import RateRule

logger = structlog.get_logger()


SAMPLE_RATE_RULES: tuple[RateRule, ...] = (
    RateRule(
        id="1",
        name="Ground Transportation Standard",
        service_type="ground",
        base_price=Decimal("300"),
        weight_multiplier=Decimal("0.5"),
        distance_multiplier=Decimal("1.2"),
        urgency_multiplier=Decimal("1.0"),
        volume_discount_threshold=Decimal("10000"),
        volume_discount_rate=Decimal("0.1"),
        fuel_surcharge=Decimal("0.15"),
        seasonal_adjustment=Decimal("1.0"),
    ),
    RateRule(
        id="2",
        name="Air Freight Express",
        service_type="air",
        base_price=Decimal("500"),
        weight_multiplier=Decimal("2.0"),
        distance_multiplier=Decimal("0.8"),
        urgency_multiplier=Decimal("1.5"),
        volume_discount_threshold=Decimal("5000"),
        volume_discount_rate=Decimal("0.15"),
        fuel_surcharge=Decimal("0.25"),
        seasonal_adjustment=Decimal("1.1"),
    ),
    RateRule(
        id="3",
        name="Ocean Freight Standard",
        service_type="ocean",
        base_price=Decimal("1500"),
        weight_multiplier=Decimal("0.3"),
        distance_multiplier=Decimal("0.5"),
        urgency_multiplier=Decimal("1.0"),
        volume_discount_threshold=Decimal("20000"),
        volume_discount_rate=Decimal("0.2"),
        fuel_surcharge=Decimal("0.1"),
        seasonal_adjustment=Decimal("0.95"),
    ),
    RateRule(
        id="4",
        name="Specialized Cargo",
        service_type="specialized",
        base_price=Decimal("1000"),
        weight_multiplier=Decimal("1.5"),
        distance_multiplier=Decimal("1.0"),
        urgency_multiplier=Decimal("2.0"),
        volume_discount_threshold=Decimal("15000"),
        volume_discount_rate=Decimal("0.05"),
        fuel_surcharge=Decimal("0.2"),
        seasonal_adjustment=Decimal("1.05"),
    ),
)


def validate_rate_rules(rules: Iterable[RateRule]) -> None:
    """Check a rule set for conflicting entries.

    Args:
        rules: The rate rules to validate.

    Raises:
        RuleConfigurationError: If two active rules share a service type, or
            two rules share a non-empty id.
    """
    rules = list(rules)

    active_counts = Counter(r.service_type for r in rules if r.active)
    duplicated_types = sorted(t for t, n in active_counts.items() if n > 1)
    if duplicated_types:
        raise RuleConfigurationError(
            f"Multiple active rate rules for service type(s): {', '.join(duplicated_types)}"
        )

    id_counts = Counter(r.id for r in rules if r.id)
    duplicated_ids = sorted(i for i, n in id_counts.items() if n > 1)
    if duplicated_ids:
        raise RuleConfigurationError(f"Duplicate rate rule id(s): {', '.join(duplicated_ids)}")


def load_rate_rules(path: Path) -> list[RateRule]:
    """Load and validate rate rules from a YAML file.

    Args:
        path: Path to the YAML rules file.

    Returns:
        The validated rules, in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        RuleConfigurationError: If the YAML is malformed, a record fails
            validation, or the rule set is inconsistent.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rate rules file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise RuleConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    if raw is None:
        records: list[Any] = []
    elif isinstance(raw, dict) and isinstance(raw.get("rules", []), list):
        records = raw.get("rules", [])
    else:
        raise RuleConfigurationError(f"{path} must contain a top-level 'rules' list")

    rules: list[RateRule] = []
    for index, record in enumerate(records):
        try:
            rules.append(RateRule.model_validate(record))
        except ValidationError as exc:
            raise RuleConfigurationError(
                f"Invalid rate rule at position {index} in {path}: {exc.errors()}"
            ) from exc

    validate_rate_rules(rules)
    logger.info("rate_rules_loaded", path=str(path), count=len(rules))
    return rules


def dump_rate_rules(rules: Iterable[RateRule], path: Path) -> None:
    """Write rate rules to a YAML file in the layout ``load_rate_rules`` reads.

    Decimals are written as strings so no precision is lost.

    Args:
        rules: The rules to write.
        path: Destination file; parent directories are created as needed.
    """
    records = [rule.model_dump(mode="json", exclude_none=True) for rule in rules]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump({"rules": records}, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )


def update_rate_rule(
    rules: Iterable[RateRule],
    updated: RateRule,
    now: datetime | None = None,
) -> list[RateRule]:
    """Replace the rule with ``updated.id`` and stamp its ``last_updated``.

    Args:
        rules: The current rule set.
        updated: The edited rule; matched to an existing rule by id.
        now: Timestamp to record. Defaults to the current UTC time.

    Returns:
        A new rule list with the edited rule in its original position.

    Raises:
        RuleConfigurationError: If ``updated.id`` is empty or unknown, or the
            edit leaves the rule set inconsistent.
    """
    if not updated.id:
        raise RuleConfigurationError("Cannot update a rate rule without an id")

    stamped = updated.model_copy(update={"last_updated": now or datetime.now(tz=UTC)})

    result: list[RateRule] = []
    found = False
    for rule in rules:
        if rule.id == updated.id:
            result.append(stamped)
            found = True
        else:
            result.append(rule)

    if not found:
        raise RuleConfigurationError(f"Unknown rate rule id: {updated.id}")

    validate_rate_rules(result)
    logger.info("rate_rule_updated", rule_id=updated.id, service_type=updated.service_type)
    return result
