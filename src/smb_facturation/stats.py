# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Sales statistics for SMB Facturation.

All statistics are computed from a flat "invoice lines" DataFrame, with one
row per invoice line and the columns listed in `io.INVOICE_LINE_COLUMNS`:

    invoice_number, issue_date, due_date, payment_date, status, client,
    tax_rate, discount_percent, designation, product, quantity,
    unit_price, amount

`amount` is the tax-exclusive line total (quantity * unit_price). Revenue
figures below are therefore HT amounts.

Such a frame is either read from CSV (`io.read_invoice_lines`) or built
from Invoice objects (`invoices_to_frame`).

Every function accepts an optional Period; when given, only invoices whose
issue date falls within it are considered.

1. Revenue & volume
   -----------------
   - revenue_by_month(frame, period)    -> month, revenue
   - quantity_by_month(frame, period)   -> month, quantity
   - monthly_growth_pct(frame, period)  -> last month vs previous month (%)

2. Rankings
   ---------
   - top_clients(frame, period, limit)  -> client, revenue
   - top_products(frame, period, limit) -> product, quantity, revenue,
                                           sales, average_price

3. Invoices
   ---------
   - average_payment_delay(frame, period) -> whole days
   - status_breakdown(frame, period)      -> status, invoices
   - client_revenue(invoices, client)     -> paid HT + TVA for one client
"""

import logging
from collections.abc import Iterable
from typing import Optional

import pandas as pd

from .calculator import compute_invoice_totals
from .io import INVOICE_LINE_COLUMNS
from .models import Client, Invoice, InvoiceStatus
from .periods import Period, filter_frame_by_period

logger = logging.getLogger(__name__)


def invoices_to_frame(invoices: Iterable[Invoice]) -> pd.DataFrame:
    """
    Flatten invoices into the invoice-lines layout.

    An invoice without lines still yields one zero-amount row, so that it is
    counted by the per-invoice statistics (status breakdown, payment delay).
    """
    records: list[dict] = []
    for invoice in invoices:
        base = {
            "invoice_number": invoice.number,
            "issue_date": invoice.issue_date,
            "due_date": invoice.due_date,
            "payment_date": invoice.payment_date,
            "status": invoice.status.value,
            "client": invoice.client.display_name,
            "tax_rate": float(invoice.tax_rate),
            "discount_percent": float(invoice.discount_percent),
        }
        if not invoice.lines:
            records.append(
                {
                    **base,
                    "designation": "",
                    "product": None,
                    "quantity": 0.0,
                    "unit_price": 0.0,
                    "amount": 0.0,
                }
            )
            continue
        for line in invoice.lines:
            records.append(
                {
                    **base,
                    "designation": line.designation,
                    "product": line.product,
                    "quantity": float(line.quantity),
                    "unit_price": float(line.unit_price),
                    "amount": line.line_total,
                }
            )

    df = pd.DataFrame(records, columns=INVOICE_LINE_COLUMNS)
    for col in ("issue_date", "due_date", "payment_date"):
        df[col] = pd.to_datetime(df[col])
    for col in ("tax_rate", "discount_percent", "quantity", "unit_price", "amount"):
        df[col] = df[col].astype(float)
    return df


def _select(frame: pd.DataFrame, period: Optional[Period]) -> pd.DataFrame:
    return filter_frame_by_period(frame, period, column="issue_date")


def _per_month(frame: pd.DataFrame, value_column: str, output: str) -> pd.DataFrame:
    if frame.empty:
        return pd.DataFrame(columns=["month", output])

    d = frame.copy()
    d["month"] = d["issue_date"].dt.to_period("M").dt.to_timestamp()
    out = d.groupby("month", as_index=False)[value_column].sum()
    out = out.rename(columns={value_column: output})
    return out.sort_values("month").reset_index(drop=True)


def revenue_by_month(
    frame: pd.DataFrame, period: Optional[Period] = None
) -> pd.DataFrame:
    """Tax-exclusive revenue per calendar month, oldest first."""
    return _per_month(_select(frame, period), "amount", "revenue")


def quantity_by_month(
    frame: pd.DataFrame, period: Optional[Period] = None
) -> pd.DataFrame:
    """Quantity sold per calendar month, oldest first."""
    return _per_month(_select(frame, period), "quantity", "quantity")


def monthly_growth_pct(frame: pd.DataFrame, period: Optional[Period] = None) -> float:
    """
    Revenue growth of the last month relative to the month before, in percent.

    - fewer than two months of data: 0.0
    - previous month at zero: 0.0 if the last month is zero too, else 100.0
    """
    monthly = revenue_by_month(frame, period)
    if len(monthly) < 2:
        return 0.0

    last = float(monthly["revenue"].iloc[-1])
    previous = float(monthly["revenue"].iloc[-2])

    if previous == 0:
        return 0.0 if last == 0 else 100.0
    return (last - previous) / previous * 100.0


def top_clients(
    frame: pd.DataFrame,
    period: Optional[Period] = None,
    limit: Optional[int] = None,
) -> pd.DataFrame:
    """Clients ranked by tax-exclusive revenue, highest first."""
    d = _select(frame, period)
    if d.empty:
        return pd.DataFrame(columns=["client", "revenue"])

    out = d.groupby("client", as_index=False)["amount"].sum()
    out = out.rename(columns={"amount": "revenue"})
    out = out.sort_values("revenue", ascending=False, kind="mergesort")
    if limit is not None:
        out = out.head(limit)
    return out.reset_index(drop=True)


def top_products(
    frame: pd.DataFrame,
    period: Optional[Period] = None,
    limit: Optional[int] = None,
) -> pd.DataFrame:
    """
    Products ranked by quantity sold, highest first.

    Lines without a product reference are ignored (a warning reports how
    many). `sales` counts invoice lines; `average_price` is revenue divided
    by quantity (0.0 when nothing was sold).
    """
    columns = ["product", "quantity", "revenue", "sales", "average_price"]
    d = _select(frame, period)

    has_product = d["product"].notna()
    skipped = int((~has_product & (d["designation"] != "")).sum())
    if skipped:
        logger.warning("%d invoice line(s) without product reference ignored", skipped)

    d = d.loc[has_product]
    if d.empty:
        return pd.DataFrame(columns=columns)

    out = d.groupby("product", as_index=False).agg(
        quantity=("quantity", "sum"),
        revenue=("amount", "sum"),
        sales=("amount", "size"),
    )
    out["average_price"] = [
        revenue / quantity if quantity else 0.0
        for revenue, quantity in zip(out["revenue"], out["quantity"])
    ]
    out = out.sort_values("quantity", ascending=False, kind="mergesort")
    if limit is not None:
        out = out.head(limit)
    return out[columns].reset_index(drop=True)


def _invoices(frame: pd.DataFrame) -> pd.DataFrame:
    """One row per invoice (first line kept)."""
    return frame.drop_duplicates(subset="invoice_number", keep="first")


def average_payment_delay(
    frame: pd.DataFrame, period: Optional[Period] = None
) -> int:
    """
    Mean number of days between issue and payment of paid invoices.

    Only invoices with status Payée and a payment date are considered. The
    mean is truncated to whole days; 0 when there is no such invoice.
    """
    d = _invoices(_select(frame, period))
    paid = d.loc[
        (d["status"] == InvoiceStatus.PAID.value) & d["payment_date"].notna()
    ]
    if paid.empty:
        return 0

    delays = (paid["payment_date"] - paid["issue_date"]).dt.days
    return int(delays.sum() / len(delays))


def status_breakdown(
    frame: pd.DataFrame, period: Optional[Period] = None
) -> pd.DataFrame:
    """
    Number of invoices per status.

    Statuses are listed in lifecycle order; statuses with no invoice are
    omitted.
    """
    d = _invoices(_select(frame, period))
    counts = d["status"].value_counts()

    rows = [
        {"status": status.value, "invoices": int(counts[status.value])}
        for status in InvoiceStatus
        if status.value in counts.index
    ]
    return pd.DataFrame(rows, columns=["status", "invoices"])


def client_revenue(invoices: Iterable[Invoice], client: Client) -> float:
    """
    Revenue collected from one client: subtotal + VAT of its paid invoices.

    The discount is not deducted, matching the client sheet figures.
    """
    total = 0.0
    for invoice in invoices:
        if invoice.client != client or invoice.status is not InvoiceStatus.PAID:
            continue
        totals = compute_invoice_totals(invoice)
        total += totals.subtotal + totals.tax_amount
    return total
