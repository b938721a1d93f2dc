"""Command-line interface for pricing freight quotes.

Subcommands:

- ``quote``: price a single shipment, optionally saving it to the quote log
- ``batch``: price a JSON list of requests in one pass
- ``quotes``: list saved quotes

Usage::

    python -m freight_pricing.cli quote --service-type ground --weight 1000 --distance 500
    python -m freight_pricing.cli batch requests.json --save
    python -m freight_pricing.cli --format json quotes --service-type air
"""

from __future__ import annotations

import argparse
import json
import logging
import sqlite3
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from freight_pricing.config import Settings, get_settings, load_configured_rules
from freight_pricing.domain.errors import FreightPricingError, InvalidInputError, QuoteStoreError
from freight_pricing.domain.models import PriceCalculation, QuoteRequest, RateRule, format_money
from freight_pricing.domain.types import QuoteStatus, Urgency
from freight_pricing.pricing.engine import calculate_price
from freight_pricing.quotes.store import close_quote_db, init_quote_db, query_quotes, save_quote

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_APPLICABLE = 2


def configure_logging(production: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Logs go to stderr so command output on stdout stays machine-readable.

    Args:
        production: Enable production mode if ``True``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="freight-pricing")


def _decimal_arg(value: str) -> Decimal:
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not number.is_finite():
        raise argparse.ArgumentTypeError(f"not a finite number: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with ``quote``, ``batch``, and ``quotes`` subcommands.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(description="Price freight quotes from rate rules")
    parser.add_argument(
        "--rules",
        type=Path,
        help="Rate rules YAML file (default: FREIGHT_RATE_RULES_PATH or built-in samples)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        help="Quote log database (default: FREIGHT_QUOTE_DB_PATH)",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    quote = subparsers.add_parser("quote", help="Price a single shipment")
    quote.add_argument("--service-type", required=True, help="Service type, e.g. ground")
    quote.add_argument("--weight", type=_decimal_arg, required=True, help="Weight in lbs")
    quote.add_argument("--distance", type=_decimal_arg, required=True, help="Distance in miles")
    quote.add_argument(
        "--urgency",
        choices=[u.value for u in Urgency],
        default=Urgency.STANDARD.value,
        help="Delivery speed tier (default: standard)",
    )
    quote.add_argument(
        "--volume", type=_decimal_arg, default=Decimal("0"), help="Volume in cubic ft"
    )
    quote.add_argument("--origin", default="", help="Origin, e.g. 'Dallas, TX'")
    quote.add_argument("--destination", default="", help="Destination")
    quote.add_argument("--save", action="store_true", help="Save the quote as a draft")
    quote.add_argument("--user", help="Author recorded on saved quotes")

    batch = subparsers.add_parser("batch", help="Price a JSON list of quote requests")
    batch.add_argument("file", type=Path, help="JSON file containing a list of requests")
    batch.add_argument("--save", action="store_true", help="Save every priced quote")
    batch.add_argument("--user", help="Author recorded on saved quotes")

    quotes = subparsers.add_parser("quotes", help="List saved quotes")
    quotes.add_argument("--service-type", help="Filter by service type")
    quotes.add_argument(
        "--status", choices=[s.value for s in QuoteStatus], help="Filter by status"
    )
    quotes.add_argument("--user", dest="generated_by", help="Filter by author")
    quotes.add_argument("--limit", type=int, default=50, help="Maximum results (default: 50)")

    return parser


def format_calculation(calculation: PriceCalculation) -> str:
    """Format a price calculation as a human-readable breakdown.

    Args:
        calculation: The engine result to render.

    Returns:
        One line per breakdown item followed by subtotal and total.
    """
    header = f"Service: {calculation.service_type}"
    if calculation.rule_id:
        header += f" (rule {calculation.rule_id})"
    lines = [header]
    lines.extend(f"  {item}" for item in calculation.breakdown_text())
    lines.append(f"Subtotal: {format_money(calculation.subtotal)}")
    lines.append(f"Total Price: {format_money(calculation.total_price)}")
    return "\n".join(lines)


def calculation_to_dict(calculation: PriceCalculation) -> dict[str, Any]:
    """JSON-ready view of a calculation with Decimals as strings."""
    data = calculation.model_dump(mode="json")
    data["breakdown_text"] = calculation.breakdown_text()
    return data


def format_quotes_table(results: list[dict[str, Any]]) -> str:
    """Format saved quotes as a table.

    Args:
        results: Rows from ``query_quotes``.

    Returns:
        Formatted table string with header row.
    """
    if not results:
        return "No quotes found."

    headers = ["ID", "Generated", "Service", "Status", "Total", "By"]
    widths = [6, 20, 12, 9, 14, 20]

    lines: list[str] = []
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True))
    lines.append(header_line)
    lines.append("-" * len(header_line))

    for row in results:
        cells = [
            str(row["id"]),
            row["generated_at"],
            row["service_type"],
            row["status"],
            format_money(Decimal(row["total_price"])),
            row["generated_by"],
        ]
        lines.append("  ".join(c.ljust(w) for c, w in zip(cells, widths, strict=True)))

    return "\n".join(lines)


def _open_quote_db(args: argparse.Namespace, settings: Settings) -> sqlite3.Connection:
    db_path: Path = args.db or settings.quote_db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return init_quote_db(db_path)


def _run_quote(args: argparse.Namespace, settings: Settings, rules: list[RateRule]) -> int:
    request = QuoteRequest(
        service_type=args.service_type,
        weight=args.weight,
        distance=args.distance,
        urgency=Urgency(args.urgency),
        volume=args.volume,
        origin=args.origin,
        destination=args.destination,
    )
    calculation = calculate_price(request, rules, tax_rate=settings.tax_rate)
    if calculation is None:
        print(
            f"No active rate rule for service type '{request.service_type}'. "
            "Choose a different service.",
            file=sys.stderr,
        )
        return EXIT_NOT_APPLICABLE

    if args.output_format == "json":
        print(json.dumps(calculation_to_dict(calculation), indent=2))
    else:
        print(format_calculation(calculation))

    if args.save:
        conn = _open_quote_db(args, settings)
        try:
            quote_id = save_quote(conn, request, calculation, args.user or settings.default_user)
        finally:
            close_quote_db(conn)
        print(f"Saved quote #{quote_id}", file=sys.stderr)

    return EXIT_OK


def _run_batch(args: argparse.Namespace, settings: Settings, rules: list[RateRule]) -> int:
    try:
        records = json.loads(args.file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"error: cannot read {args.file}: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if not isinstance(records, list):
        print(f"error: {args.file} must contain a JSON list of requests", file=sys.stderr)
        return EXIT_ERROR

    conn = _open_quote_db(args, settings) if args.save else None
    results: list[dict[str, Any]] = []
    try:
        for index, record in enumerate(records):
            entry: dict[str, Any] = {"index": index}
            try:
                request = QuoteRequest.model_validate(record)
                calculation = calculate_price(request, rules, tax_rate=settings.tax_rate)
            except (ValidationError, InvalidInputError) as exc:
                entry.update(status="invalid", error=str(exc))
                results.append(entry)
                continue

            if calculation is None:
                entry.update(status="not_applicable", service_type=request.service_type)
            else:
                entry.update(status="priced", calculation=calculation_to_dict(calculation))
                if conn is not None:
                    try:
                        entry["quote_id"] = save_quote(
                            conn, request, calculation, args.user or settings.default_user
                        )
                    except QuoteStoreError as exc:
                        logger.warning("batch_save_failed", index=index, error=str(exc))
                        entry["save_error"] = str(exc)
            results.append(entry)
    finally:
        if conn is not None:
            close_quote_db(conn)

    logger.info(
        "batch_completed",
        total=len(results),
        priced=sum(1 for r in results if r["status"] == "priced"),
    )

    if args.output_format == "json":
        print(json.dumps(results, indent=2))
    else:
        for entry in results:
            if entry["status"] == "priced":
                total = format_money(Decimal(entry["calculation"]["total_price"]))
                if "save_error" in entry:
                    total += f" (not saved: {entry['save_error']})"
                print(f"#{entry['index']}: {total}")
            elif entry["status"] == "not_applicable":
                print(f"#{entry['index']}: no active rate rule for '{entry['service_type']}'")
            else:
                print(f"#{entry['index']}: invalid request: {entry['error']}")

    return EXIT_OK


def _run_quotes(args: argparse.Namespace, settings: Settings) -> int:
    conn = _open_quote_db(args, settings)
    try:
        results = query_quotes(
            conn,
            service_type=args.service_type,
            generated_by=args.generated_by,
            status=args.status,
            limit=args.limit,
        )
    finally:
        close_quote_db(conn)

    if args.output_format == "json":
        print(json.dumps(results, indent=2))
    else:
        print(format_quotes_table(results))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the selected subcommand, and return an exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.production)

    try:
        if args.command == "quotes":
            return _run_quotes(args, settings)

        if args.rules is not None:
            settings = settings.model_copy(update={"rate_rules_path": args.rules})
        rules = load_configured_rules(settings)

        if args.command == "quote":
            return _run_quote(args, settings, rules)
        return _run_batch(args, settings, rules)
    except (FreightPricingError, FileNotFoundError, ValidationError) as exc:
        logger.error("command_failed", command=args.command, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
