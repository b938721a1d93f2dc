"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by a ``.env`` file and
``FREIGHT_``-prefixed environment variables, a cached ``get_settings()``
accessor, and ``load_configured_rules()`` which resolves the rate rule set
the settings point at.
"""

from __future__ import annotations

import sys
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from freight_pricing.domain.models import RateRule
from freight_pricing.pricing.engine import DEFAULT_TAX_RATE
from freight_pricing.pricing.rate_rules import SAMPLE_RATE_RULES, load_rate_rules

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file."""

    model_config = SettingsConfigDict(
        env_prefix="FREIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    default_user: str = "system"

    # -- Pricing ---------------------------------------------------------------
    tax_rate: Decimal = Field(default=DEFAULT_TAX_RATE, ge=0, le=1)
    rate_rules_path: Path | None = None

    # -- Quote log -------------------------------------------------------------
    quote_db_path: Path = Path("data/quotes.db")


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def load_configured_rules(settings: Settings) -> list[RateRule]:
    """Load the rate rules named by ``settings.rate_rules_path``.

    Falls back to the sample rule set when no path is configured.

    Args:
        settings: The loaded application settings.

    Returns:
        The rate rules to price against.

    Raises:
        FileNotFoundError: If the configured rules file does not exist.
        RuleConfigurationError: If the configured rules file is invalid.
    """
    if settings.rate_rules_path is None:
        logger.debug("rate_rules_path_unset_using_samples")
        return list(SAMPLE_RATE_RULES)
    return load_rate_rules(settings.rate_rules_path)
