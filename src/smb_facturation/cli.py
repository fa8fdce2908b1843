# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB Facturation.

This module wires together the building blocks of SMB Facturation:

- application configuration (company identity, VAT rates, database),
- invoice calculator (totals from a CSV of invoice lines),
- invoice numbering backed by the SQLite counter store,
- business identifier validators,
- sales statistics over a CSV of invoice lines.

The CLI is intentionally thin: it does not implement invoicing logic
itself. It parses arguments, calls the underlying modules and prints the
results.


Commands
--------

- ``totals --lines CSV [--tax-rate R] [--discount D]``
    Print subtotal (HT), VAT, discount and total due (TTC). Rates default
    to the company's default VAT rate and to the configured default
    discount. A VAT rate outside the allowed set only triggers a warning.

- ``number --client-name NAME [--client-company COMPANY] [--date DATE]``
    Issue the next invoice number and store the incremented counter.

- ``reset-sequence``
    Restart numbering at 0001 (e.g. at the start of a new year).

- ``numbers``
    List the invoice numbers already issued.

- ``validate {siret,vat,iban,tax-rate} VALUE``
    Validate a single identifier. Exit status is 1 when invalid.

- ``check-company``
    Validate the identifiers of the company defined in the configuration.

- ``stats --invoices CSV [--period P | --from-date D --to-date D]``
    Print sales statistics (monthly revenue, top clients and products,
    average payment delay, status breakdown).


Configuration
-------------

By default, the CLI reads ``smb_facturation_config.toml`` in the current
working directory. You can override this path using ``--config PATH``.
When no path is given and the default file does not exist, built-in
defaults are used (French VAT rates, database under data/db/).
"""

import argparse
import logging
import sqlite3
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from . import __version__
from .calculator import compute_totals, is_valid_line_item
from .config import (
    DEFAULT_CONFIG_FILENAME,
    AppConfig,
    default_app_config,
    load_app_config,
)
from .db import (
    init_database,
    issue_invoice_number,
    list_issued_numbers,
    load_number_state,
    reset_sequence,
)
from .io import read_invoice_lines, read_line_items
from .numbering import client_initials
from .periods import PERIOD_CHOICES, determine_period_from_args
from .stats import (
    average_payment_delay,
    monthly_growth_pct,
    revenue_by_month,
    status_breakdown,
    top_clients,
    top_products,
)
from .validators import (
    is_valid_iban,
    is_valid_tax_id,
    is_valid_tax_rate,
    is_valid_vat_number,
    validate_company,
)

STATS_SECTIONS = ("monthly", "clients", "products", "delay", "status")


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_facturation.cli",
        description=(
            "SMB Facturation - Invoicing core for French SMBs. "
            "Computes invoice totals, issues sequential invoice numbers, "
            "validates SIRET / VAT / IBAN identifiers and prints sales "
            "statistics."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_facturation and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. "
            f"If omitted, '{DEFAULT_CONFIG_FILENAME}' in the current directory "
            "is used when it exists."
        ),
    )

    ap.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level for diagnostic messages (default: WARNING).",
    )

    subparsers = ap.add_subparsers(
        dest="command",
        metavar="command",
        help="Subcommand to run.",
    )

    # ------------------------------------------------------------------
    # totals
    # ------------------------------------------------------------------
    totals = subparsers.add_parser(
        "totals",
        help="Compute invoice totals from a CSV of invoice lines.",
    )
    totals.add_argument(
        "--lines",
        dest="lines_path",
        required=True,
        metavar="CSV_PATH",
        help="CSV file with designation, quantity, unit_price columns.",
    )
    totals.add_argument(
        "--tax-rate",
        dest="tax_rate",
        type=float,
        help="VAT rate in percent. Defaults to the company default rate.",
    )
    totals.add_argument(
        "--discount",
        dest="discount",
        type=float,
        help="Discount in percent. Defaults to invoicing.default_discount_percent.",
    )

    # ------------------------------------------------------------------
    # number / reset-sequence / numbers
    # ------------------------------------------------------------------
    number = subparsers.add_parser(
        "number",
        help="Issue the next invoice number.",
    )
    number.add_argument(
        "--client-name",
        dest="client_name",
        default="",
        help="Client's personal name.",
    )
    number.add_argument(
        "--client-company",
        dest="client_company",
        default="",
        help="Client's company name (optional).",
    )
    number.add_argument(
        "--date",
        dest="issue_date",
        help="Invoice date (YYYY-MM-DD). Defaults to today.",
    )

    subparsers.add_parser(
        "reset-sequence",
        help="Restart invoice numbering at 0001.",
    )

    subparsers.add_parser(
        "numbers",
        help="List invoice numbers already issued.",
    )

    # ------------------------------------------------------------------
    # validate / check-company
    # ------------------------------------------------------------------
    validate = subparsers.add_parser(
        "validate",
        help="Validate a SIRET, VAT number, IBAN or VAT rate.",
    )
    validate.add_argument(
        "kind",
        choices=["siret", "vat", "iban", "tax-rate"],
        help="Kind of value to validate.",
    )
    validate.add_argument("value", help="Value to validate.")

    subparsers.add_parser(
        "check-company",
        help="Validate the company identifiers defined in the configuration.",
    )

    # ------------------------------------------------------------------
    # stats
    # ------------------------------------------------------------------
    stats = subparsers.add_parser(
        "stats",
        help="Print sales statistics from a CSV of invoice lines.",
    )
    stats.add_argument(
        "--invoices",
        dest="invoices_path",
        required=True,
        metavar="CSV_PATH",
        help="CSV file with one row per invoice line.",
    )
    stats.add_argument(
        "--period",
        choices=list(PERIOD_CHOICES),
        help=(
            "Predefined period: 7d, 30d, 3m, 6m, ytd, last-year, year. "
            "If omitted (and no custom dates), all invoices are used."
        ),
    )
    stats.add_argument(
        "--from-date",
        dest="from_date",
        help="Custom period start date (YYYY-MM-DD). Takes precedence over --period.",
    )
    stats.add_argument(
        "--to-date",
        dest="to_date",
        help="Custom period end date (YYYY-MM-DD). Takes precedence over --period.",
    )
    stats.add_argument(
        "--section",
        dest="sections",
        action="append",
        choices=list(STATS_SECTIONS),
        help="Section to print (repeatable). Defaults to all sections.",
    )
    stats.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of clients/products in rankings (default: 10).",
    )

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _load_config(args: argparse.Namespace) -> AppConfig:
    """Load the TOML config, or defaults when no file is available."""
    if args.config_path:
        return load_app_config(args.config_path)
    if Path(DEFAULT_CONFIG_FILENAME).is_file():
        return load_app_config()
    return default_app_config()


def _fmt(amount: float, config: AppConfig) -> str:
    return f"{amount:.{config.amount_decimals}f} {config.currency}"


def _handle_totals(args: argparse.Namespace, config: AppConfig) -> None:
    """Handle the 'totals' subcommand."""
    path = Path(args.lines_path)
    if not path.is_file():
        raise SystemExit(f"Line items CSV not found: {path}")

    lines = read_line_items(path)
    tax_rate = (
        args.tax_rate if args.tax_rate is not None else config.company.default_tax_rate
    )
    discount = (
        args.discount if args.discount is not None else config.default_discount_percent
    )

    invalid = [line for line in lines if not is_valid_line_item(line)]
    if invalid:
        print(f"Warning: {len(invalid)} invalid line(s) (empty designation, "
              "non-positive quantity or negative price).")
    if not is_valid_tax_rate(tax_rate, config.allowed_tax_rates):
        print(f"Warning: VAT rate {tax_rate} is not an allowed rate.")

    totals = compute_totals(lines, tax_rate, discount)

    print(f"Lines:          {len(lines)}")
    print(f"Subtotal (HT):  {_fmt(totals.subtotal, config)}")
    print(f"VAT ({tax_rate:g} %):   {_fmt(totals.tax_amount, config)}")
    print(f"Discount ({discount:g} %): {_fmt(totals.discount_amount, config)}")
    print(f"Total due (TTC): {_fmt(totals.total_due, config)}")


def _handle_number(args: argparse.Namespace, config: AppConfig) -> None:
    """Handle the 'number' subcommand."""
    issue_date = _parse_optional_date(args.issue_date) or date.today()
    initials = client_initials(args.client_company, args.client_name)

    try:
        number = issue_invoice_number(config.database, initials, issue_date)
    except sqlite3.IntegrityError as exc:
        raise SystemExit(
            "This invoice number was already issued. "
            "Was the sequence reset during the current month?"
        ) from exc

    print(number)


def _handle_reset_sequence(args: argparse.Namespace, config: AppConfig) -> None:
    """Handle the 'reset-sequence' subcommand."""
    state = reset_sequence(config.database)
    print(f"Invoice numbering reset. Next sequence: {state.next_sequence:04d}")


def _handle_numbers(args: argparse.Namespace, config: AppConfig) -> None:
    """Handle the 'numbers' subcommand."""
    state = load_number_state(config.database)
    df = list_issued_numbers(config.database)

    if df.empty:
        print("No invoice number issued yet.")
    else:
        df_display = df[["number", "client_initials", "issue_date", "created_at"]].copy()
        df_display["issue_date"] = df_display["issue_date"].dt.date.astype(str)
        print(df_display.to_string(index=False))
        print()
        print(f"Total issued: {len(df)}")

    print(f"Next sequence: {state.next_sequence:04d}")


def _handle_validate(args: argparse.Namespace, config: AppConfig) -> int:
    """Handle the 'validate' subcommand. Return the exit status."""
    kind = args.kind
    value = args.value

    if kind == "siret":
        ok = is_valid_tax_id(value)
    elif kind == "vat":
        ok = is_valid_vat_number(value)
    elif kind == "iban":
        ok = is_valid_iban(value)
    else:
        try:
            rate = float(value)
        except ValueError:
            ok = False
        else:
            ok = is_valid_tax_rate(rate, config.allowed_tax_rates)

    print(f"{kind} {value!r}: {'valid' if ok else 'invalid'}")
    return 0 if ok else 1


def _handle_check_company(args: argparse.Namespace, config: AppConfig) -> int:
    """Handle the 'check-company' subcommand. Return the exit status."""
    company = config.company
    label = company.name or "(unnamed company)"
    problems = validate_company(company, config.allowed_tax_rates)

    if not problems:
        print(f"{label}: all identifiers are valid.")
        return 0

    print(f"{label}: {len(problems)} problem(s) found.")
    for problem in problems:
        print(f"  - {problem}")
    return 1


def _handle_stats(args: argparse.Namespace, config: AppConfig) -> None:
    """Handle the 'stats' subcommand."""
    path = Path(args.invoices_path)
    if not path.is_file():
        raise SystemExit(f"Invoice lines CSV not found: {path}")

    frame = read_invoice_lines(path)
    try:
        period = determine_period_from_args(args)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    if period is not None:
        print(
            f"Applied period: {period.label} "
            f"({period.start.isoformat()} → {period.end.isoformat()})"
        )
    else:
        print("Applied period: all invoices")

    sections = args.sections or list(STATS_SECTIONS)

    if "monthly" in sections:
        monthly = revenue_by_month(frame, period)
        print()
        print("=== Revenue by month (HT) ===")
        if monthly.empty:
            print("No invoices for the selected period.")
        else:
            monthly = monthly.copy()
            monthly["month"] = monthly["month"].dt.strftime("%Y-%m")
            print(monthly.to_string(index=False))
            print(f"Month-over-month growth: {monthly_growth_pct(frame, period):.1f} %")

    if "clients" in sections:
        print()
        print("=== Top clients (HT) ===")
        clients = top_clients(frame, period, limit=args.limit)
        print("No data." if clients.empty else clients.to_string(index=False))

    if "products" in sections:
        print()
        print("=== Top products ===")
        products = top_products(frame, period, limit=args.limit)
        print("No data." if products.empty else products.to_string(index=False))

    if "delay" in sections:
        print()
        print(f"Average payment delay: {average_payment_delay(frame, period)} days")

    if "status" in sections:
        print()
        print("=== Invoices by status ===")
        breakdown = status_breakdown(frame, period)
        print("No data." if breakdown.empty else breakdown.to_string(index=False))


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the SMB Facturation CLI.

    Parses command-line arguments, configures logging, loads the
    configuration and dispatches to the requested subcommand. Returns the
    process exit status.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_facturation version {__version__}")
        return 0

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    try:
        config = _load_config(args)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    command = args.command
    if command in {"number", "reset-sequence", "numbers"}:
        init_database(config.database, prefix=config.company.invoice_prefix)

    if command == "totals":
        _handle_totals(args, config)
    elif command == "number":
        _handle_number(args, config)
    elif command == "reset-sequence":
        _handle_reset_sequence(args, config)
    elif command == "numbers":
        _handle_numbers(args, config)
    elif command == "validate":
        return _handle_validate(args, config)
    elif command == "check-company":
        return _handle_check_company(args, config)
    elif command == "stats":
        _handle_stats(args, config)

    return 0


if __name__ == "__main__":
    sys.exit(main())
