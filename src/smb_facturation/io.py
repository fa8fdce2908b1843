# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB Facturation.

This module reads the two CSV layouts used by the command-line interface
and normalizes them into the structures consumed by the core.

Line items
----------
    designation, quantity, unit_price[, order_reference, order_date, product]

- Column names are case-insensitive; ``price`` is accepted as an alias for
  ``unit_price`` and ``label`` for ``designation``.
- The result is a list of `LineItem`, in file order.

Invoice lines (statistics input)
--------------------------------
One row per invoice line:

    invoice_number, issue_date, status, client, designation,
    quantity, unit_price
    [, due_date, payment_date, product, tax_rate, discount_percent]

- ``status`` accepts the printed labels ("Payée") or the enum names
  ("paid"), case-insensitively.
- The result is a DataFrame with exactly the INVOICE_LINE_COLUMNS columns,
  dates as datetime64[ns] and an ``amount`` column (quantity * unit_price).

If a CSV does not have the required columns, or if numeric/date parsing
fails, a clear ValueError is raised.
"""

import os
from typing import Union

import pandas as pd

from .models import InvoiceStatus, LineItem

INVOICE_LINE_COLUMNS = [
    "invoice_number",
    "issue_date",
    "due_date",
    "payment_date",
    "status",
    "client",
    "tax_rate",
    "discount_percent",
    "designation",
    "product",
    "quantity",
    "unit_price",
    "amount",
]

_STATUS_LOOKUP: dict[str, InvoiceStatus] = {}
for _status in InvoiceStatus:
    _STATUS_LOOKUP[_status.value.lower()] = _status
    _STATUS_LOOKUP[_status.name.lower()] = _status


def _read_csv_normalized(path: Union[str, "os.PathLike[str]"]) -> pd.DataFrame:
    """
    Read a CSV as text and lowercase/strip its column names.

    Every cell is kept as a string (empty cells as NaN) so identifiers such
    as product "101" or client "007" are not turned into numbers. Numeric
    and date columns are converted explicitly by the readers.
    """
    df = pd.read_csv(path, dtype=str)
    df.columns = [str(c).lower().strip() for c in df.columns]
    return df


def _to_numeric(df: pd.DataFrame, columns: list[str]) -> None:
    for col in columns:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    if df[columns].isna().any().any():
        joined = "'/'".join(columns)
        raise ValueError(f"Invalid numeric values in '{joined}' column(s).")


def _to_dates(df: pd.DataFrame, column: str, required: bool) -> None:
    try:
        df[column] = pd.to_datetime(df[column], errors="raise")
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Invalid values in '{column}' column.") from exc
    if required and df[column].isna().any():
        raise ValueError(f"Missing values in '{column}' column.")


def _optional_text(value) -> Union[str, None]:
    if pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def parse_status(value: str) -> InvoiceStatus:
    """
    Map a status cell to an InvoiceStatus.

    Raises:
        ValueError: if the value is not a known status label or name.
    """
    key = str(value).strip().lower()
    try:
        return _STATUS_LOOKUP[key]
    except KeyError as exc:
        raise ValueError(f"Unknown invoice status: {value!r}") from exc


def read_line_items(path: Union[str, "os.PathLike[str]"]) -> list[LineItem]:
    """
    Read invoice lines from a CSV file.

    Returns
    -------
    list[LineItem]
        One LineItem per CSV row, in file order.

    Raises
    ------
    ValueError
        If required columns are missing or quantity/price are not numeric.
    """
    df = _read_csv_normalized(path)
    cols = set(df.columns)

    if "price" in cols and "unit_price" not in cols:
        df = df.rename(columns={"price": "unit_price"})
    if "label" in cols and "designation" not in cols:
        df = df.rename(columns={"label": "designation"})
    cols = set(df.columns)

    required = {"designation", "quantity", "unit_price"}
    missing = required.difference(cols)
    if missing:
        raise ValueError(
            "Invalid line items structure. Missing column(s): "
            + ", ".join(sorted(missing))
            + ". Expected: designation, quantity, unit_price "
            "[, order_reference, order_date, product]."
        )

    d = df.copy()
    _to_numeric(d, ["quantity", "unit_price"])

    if "order_date" in cols:
        _to_dates(d, "order_date", required=False)

    items: list[LineItem] = []
    for _, row in d.iterrows():
        order_date = None
        if "order_date" in cols and not pd.isna(row["order_date"]):
            order_date = row["order_date"].date()

        items.append(
            LineItem(
                designation="" if pd.isna(row["designation"]) else str(row["designation"]),
                quantity=float(row["quantity"]),
                unit_price=float(row["unit_price"]),
                order_reference=(
                    _optional_text(row["order_reference"])
                    if "order_reference" in cols
                    else None
                ),
                order_date=order_date,
                product=_optional_text(row["product"]) if "product" in cols else None,
            )
        )
    return items


def read_invoice_lines(path: Union[str, "os.PathLike[str]"]) -> pd.DataFrame:
    """
    Read a flat invoice-lines CSV used by the statistics.

    Returns
    -------
    pandas.DataFrame
        A DataFrame with exactly the INVOICE_LINE_COLUMNS columns.

    Raises
    ------
    ValueError
        If required columns are missing, or if dates, numbers or statuses
        cannot be parsed.
    """
    df = _read_csv_normalized(path)
    cols = set(df.columns)

    required = {
        "invoice_number",
        "issue_date",
        "status",
        "client",
        "designation",
        "quantity",
        "unit_price",
    }
    missing = required.difference(cols)
    if missing:
        raise ValueError(
            "Invalid invoice lines structure. Missing column(s): "
            + ", ".join(sorted(missing))
            + "."
        )

    d = df.copy()

    # Optional columns get neutral defaults.
    for col in ("due_date", "payment_date", "product"):
        if col not in cols:
            d[col] = None
    if "tax_rate" not in cols:
        d["tax_rate"] = 20.0
    if "discount_percent" not in cols:
        d["discount_percent"] = 0.0

    _to_dates(d, "issue_date", required=True)
    _to_dates(d, "due_date", required=False)
    _to_dates(d, "payment_date", required=False)
    _to_numeric(d, ["quantity", "unit_price", "tax_rate", "discount_percent"])

    d["status"] = [parse_status(v).value for v in d["status"]]
    d["invoice_number"] = d["invoice_number"].astype(str).str.strip()
    d["client"] = d["client"].astype(str).str.strip()
    d["designation"] = d["designation"].fillna("").astype(str)
    d["product"] = [_optional_text(v) for v in d["product"]]
    d["amount"] = d["quantity"] * d["unit_price"]

    return d[INVOICE_LINE_COLUMNS].copy()
