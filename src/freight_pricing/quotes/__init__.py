"""Quote log: models and SQLite storage for saved quotes."""

from freight_pricing.quotes.models import SavedQuote, default_quote_tags
from freight_pricing.quotes.store import (
    close_quote_db,
    init_quote_db,
    insert_quote,
    query_quotes,
    save_quote,
)

__all__ = [
    "SavedQuote",
    "close_quote_db",
    "default_quote_tags",
    "init_quote_db",
    "insert_quote",
    "query_quotes",
    "save_quote",
]
