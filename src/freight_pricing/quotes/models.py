"""Saved quote model: a computed price plus the request that produced it."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from freight_pricing.domain.models import PriceCalculation, QuoteRequest
from freight_pricing.domain.types import QuoteStatus


def default_quote_tags(service_type: str) -> list[str]:
    """Tags attached to every automatically generated quote."""
    return ["quote", "automated", service_type]


class SavedQuote(BaseModel):
    """A quote as written to the quote log.

    New quotes start as drafts; status changes happen outside this package.
    """

    request: QuoteRequest
    calculation: PriceCalculation
    generated_by: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    status: QuoteStatus = QuoteStatus.DRAFT
    tags: list[str] = Field(default_factory=list)
