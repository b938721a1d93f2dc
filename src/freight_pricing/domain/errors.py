"""Domain-specific exception classes for freight pricing."""

from decimal import Decimal


class FreightPricingError(Exception):
    """Base class for all domain errors in freight pricing."""


class InvalidInputError(FreightPricingError):
    """Raised when a quote request carries a value the engine cannot price.

    Attributes:
        field: Name of the offending request field.
        value: The rejected value.
    """

    def __init__(self, field: str, value: Decimal) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field} must not be negative, got {value}")


class RuleConfigurationError(FreightPricingError):
    """Raised when a rate rule set is inconsistent or cannot be loaded."""


class QuoteStoreError(FreightPricingError):
    """Raised when a computed quote cannot be written to or read from the quote log."""
