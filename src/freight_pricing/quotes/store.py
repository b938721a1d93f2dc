"""SQLite-backed quote log with WAL mode and indexed queries.

Saving a quote is an explicit action of the calling context, separate from
pricing. Request and calculation payloads are stored as JSON with Decimal
values written as strings, so amounts come back exactly as computed. Uses
parameterized queries exclusively.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

import structlog

from freight_pricing.domain.errors import QuoteStoreError
from freight_pricing.domain.models import PriceCalculation, QuoteRequest
from freight_pricing.quotes.models import SavedQuote, default_quote_tags

logger = structlog.get_logger()

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def init_quote_db(db_path: Path) -> sqlite3.Connection:
    """Create and initialize the quote database with WAL mode and indexes.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        An open sqlite3.Connection with WAL mode enabled.

    Raises:
        QuoteStoreError: If the database cannot be opened or initialized.
    """
    try:
        conn = sqlite3.connect(str(db_path))
        conn.execute("PRAGMA journal_mode=WAL")

        conn.execute("""
            CREATE TABLE IF NOT EXISTS quotes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                generated_at TEXT NOT NULL,
                generated_by TEXT NOT NULL,
                service_type TEXT NOT NULL,
                status TEXT NOT NULL,
                origin TEXT,
                destination TEXT,
                total_price TEXT NOT NULL,
                tags TEXT NOT NULL,
                request_json TEXT NOT NULL,
                calculation_json TEXT NOT NULL
            )
        """)

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_quotes_service_type ON quotes (service_type)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_quotes_generated_at ON quotes (generated_at)"
        )

        conn.commit()
    except sqlite3.Error as exc:
        raise QuoteStoreError(f"Cannot initialize quote database {db_path}: {exc}") from exc
    return conn


def insert_quote(conn: sqlite3.Connection, quote: SavedQuote) -> int:
    """Insert a saved quote into the quote log.

    Args:
        conn: An open database connection.
        quote: The quote to insert.

    Returns:
        The row ID of the inserted quote.

    Raises:
        QuoteStoreError: If the insert fails.
    """
    try:
        cursor = conn.execute(
            """
            INSERT INTO quotes (
                generated_at, generated_by, service_type, status, origin,
                destination, total_price, tags, request_json, calculation_json
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                quote.generated_at.strftime(_TIMESTAMP_FORMAT),
                quote.generated_by,
                quote.request.service_type,
                quote.status.value,
                quote.request.origin,
                quote.request.destination,
                str(quote.calculation.total_price),
                json.dumps(quote.tags),
                quote.request.model_dump_json(),
                quote.calculation.model_dump_json(),
            ),
        )
        conn.commit()
    except sqlite3.Error as exc:
        raise QuoteStoreError(f"Failed to save quote: {exc}") from exc
    return cursor.lastrowid or 0


def save_quote(
    conn: sqlite3.Connection,
    request: QuoteRequest,
    calculation: PriceCalculation,
    generated_by: str,
) -> int:
    """Save a computed quote as a tagged draft.

    The calculation is immutable, so a failed save leaves the caller's
    in-memory result untouched.

    Args:
        conn: An open database connection.
        request: The request that was priced.
        calculation: The engine's result for ``request``.
        generated_by: User or job that produced the quote.

    Returns:
        The row ID of the saved quote.

    Raises:
        QuoteStoreError: If the quote cannot be written.
    """
    quote = SavedQuote(
        request=request,
        calculation=calculation,
        generated_by=generated_by,
        tags=default_quote_tags(request.service_type),
    )
    quote_id = insert_quote(conn, quote)
    logger.info(
        "quote_saved",
        quote_id=quote_id,
        service_type=request.service_type,
        total_price=str(calculation.total_price),
        generated_by=generated_by,
    )
    return quote_id


def query_quotes(
    conn: sqlite3.Connection,
    *,
    service_type: str | None = None,
    generated_by: str | None = None,
    status: str | None = None,
    from_date: str | None = None,
    to_date: str | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """Query the quote log with optional filters, newest first.

    Args:
        conn: An open database connection.
        service_type: Filter by service type (exact match).
        generated_by: Filter by author (exact match).
        status: Filter by quote status (exact match).
        from_date: Filter quotes generated on or after this ISO 8601 date.
        to_date: Filter quotes generated on or before this ISO 8601 date.
        limit: Maximum number of results to return (default 50).

    Returns:
        A list of dicts, one per quote, with ``tags``, ``request``, and
        ``calculation`` decoded from JSON.

    Raises:
        QuoteStoreError: If the query fails.
    """
    conn.row_factory = sqlite3.Row

    conditions: list[str] = []
    params: list[str | int] = []

    if service_type is not None:
        conditions.append("service_type = ?")
        params.append(service_type)

    if generated_by is not None:
        conditions.append("generated_by = ?")
        params.append(generated_by)

    if status is not None:
        conditions.append("status = ?")
        params.append(status)

    if from_date is not None:
        conditions.append("generated_at >= ?")
        params.append(from_date)

    if to_date is not None:
        conditions.append("generated_at <= ?")
        params.append(to_date)

    where_clause = ""
    if conditions:
        where_clause = "WHERE " + " AND ".join(conditions)

    query = f"SELECT * FROM quotes {where_clause} ORDER BY generated_at DESC, id DESC LIMIT ?"
    params.append(limit)

    try:
        rows = conn.execute(query, params).fetchall()
    except sqlite3.Error as exc:
        raise QuoteStoreError(f"Failed to query quotes: {exc}") from exc

    results: list[dict[str, Any]] = []
    for row in rows:
        row_dict = dict(row)
        row_dict["tags"] = json.loads(row_dict["tags"])
        row_dict["request"] = json.loads(row_dict.pop("request_json"))
        row_dict["calculation"] = json.loads(row_dict.pop("calculation_json"))
        results.append(row_dict)

    return results


def close_quote_db(conn: sqlite3.Connection) -> None:
    """Close the quote database connection.

    Args:
        conn: The database connection to close.
    """
    conn.close()
