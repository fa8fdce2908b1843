# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Invoice lifecycle.

Status changes are explicit transition functions: each one takes an Invoice
and returns a new Invoice. Nothing changes status as a side effect of
setting a field.

    Brouillon --mark_sent--> Envoyée --refresh_overdue--> En Retard
        |                      |                              |
        +------------- apply_payment (date <= today) ---------+--> Payée
        |
        +--cancel--> Annulée   (any status except Payée)

Illegal transitions raise ValueError.
"""

from collections.abc import Iterable
from dataclasses import replace
from datetime import date, timedelta
from typing import Optional

from .calculator import compute_invoice_totals
from .models import (
    Client,
    Invoice,
    InvoiceNumberState,
    InvoiceStatus,
    LineItem,
    PaymentTerms,
)
from .numbering import generate_invoice_number, initials_for

DEFAULT_PAYMENT_DELAY_DAYS = 30


def default_due_date(
    issue_date: date, delay_days: int = DEFAULT_PAYMENT_DELAY_DAYS
) -> date:
    """Due date `delay_days` after the issue date."""
    return issue_date + timedelta(days=delay_days)


def create_invoice(
    state: InvoiceNumberState,
    client: Client,
    issue_date: date,
    lines: Iterable[LineItem] = (),
    *,
    tax_rate: float = 20.0,
    discount_percent: float = 0.0,
    payment_terms: PaymentTerms = PaymentTerms.TRANSFER,
    delay_days: int = DEFAULT_PAYMENT_DELAY_DAYS,
    notes: str = "",
) -> tuple[Invoice, InvoiceNumberState]:
    """
    Create a draft invoice numbered from `state`.

    Returns:
        (invoice, new_state). The caller persists new_state.
    """
    number, new_state = generate_invoice_number(
        state, initials_for(client), issue_date
    )
    invoice = Invoice(
        number=number,
        client=client,
        issue_date=issue_date,
        due_date=default_due_date(issue_date, delay_days),
        tax_rate=tax_rate,
        discount_percent=discount_percent,
        status=InvoiceStatus.DRAFT,
        payment_terms=payment_terms,
        notes=notes,
        lines=tuple(lines),
    )
    return invoice, new_state


def mark_sent(invoice: Invoice) -> Invoice:
    """Draft -> sent."""
    if invoice.status is not InvoiceStatus.DRAFT:
        raise ValueError(
            f"Only draft invoices can be sent (invoice {invoice.number} is "
            f"{invoice.status.value!r})."
        )
    return replace(invoice, status=InvoiceStatus.SENT)


def apply_payment(
    invoice: Invoice,
    payment_date: date,
    today: Optional[date] = None,
) -> Invoice:
    """
    Record a payment date.

    The invoice becomes paid when the payment date is today or in the past.
    A payment scheduled in the future is recorded without changing status.

    Raises:
        ValueError: if the invoice is cancelled.
    """
    if invoice.status is InvoiceStatus.CANCELLED:
        raise ValueError(f"Cannot record a payment on cancelled invoice {invoice.number}.")

    today = today or date.today()
    updated = replace(invoice, payment_date=payment_date)
    if payment_date <= today:
        updated = replace(updated, status=InvoiceStatus.PAID)
    return updated


def refresh_overdue(invoice: Invoice, today: Optional[date] = None) -> Invoice:
    """Sent invoice past its due date -> overdue. Otherwise returned as is."""
    today = today or date.today()
    if (
        invoice.status is InvoiceStatus.SENT
        and invoice.due_date is not None
        and invoice.due_date < today
    ):
        return replace(invoice, status=InvoiceStatus.OVERDUE)
    return invoice


def cancel(invoice: Invoice) -> Invoice:
    """Cancel an invoice that has not been paid."""
    if invoice.status is InvoiceStatus.PAID:
        raise ValueError(f"Invoice {invoice.number} is paid and cannot be cancelled.")
    return replace(invoice, status=InvoiceStatus.CANCELLED)


def is_valid_invoice(invoice: Invoice) -> bool:
    """An invoice is valid with a number, a positive total and a valid client."""
    return (
        bool(invoice.number)
        and compute_invoice_totals(invoice).total_due > 0
        and invoice.client.is_valid
    )
