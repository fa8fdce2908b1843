# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Invoice financial calculations.

The computation follows the order used on the printed invoice:

    subtotal        = sum(quantity * unit_price)          (HT)
    tax_amount      = subtotal * tax_rate / 100           (TVA)
    gross           = subtotal + tax_amount
    discount_amount = gross * discount_percent / 100      (remise)
    total_due       = gross - discount_amount             (TTC)

Rates are not range-checked: negative or > 100 percentages propagate
arithmetically into the results. Callers that want to restrict VAT rates
can use `validators.is_valid_tax_rate` beforehand.
"""

from collections.abc import Iterable

from .models import Invoice, InvoiceTotals, LineItem


def is_valid_line_item(line: LineItem) -> bool:
    """Return True if the line has a designation, a positive quantity and a
    non-negative unit price."""
    return bool(line.designation) and line.quantity > 0 and line.unit_price >= 0


def compute_totals(
    lines: Iterable[LineItem],
    tax_rate_percent: float,
    discount_percent: float,
) -> InvoiceTotals:
    """
    Compute the totals of an invoice.

    Args:
        lines: Invoice lines, summed in input order. May be empty.
        tax_rate_percent: VAT rate in percent (e.g. 20.0).
        discount_percent: Discount in percent, applied on the tax-inclusive
            amount.

    Returns:
        An InvoiceTotals instance. An empty `lines` gives all-zero totals.
    """
    subtotal = 0.0
    for line in lines:
        subtotal += line.quantity * line.unit_price

    tax_amount = subtotal * (tax_rate_percent / 100)
    gross = subtotal + tax_amount
    discount_amount = gross * (discount_percent / 100)

    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total_due=gross - discount_amount,
    )


def compute_invoice_totals(invoice: Invoice) -> InvoiceTotals:
    """Totals of an invoice using its own lines, VAT rate and discount."""
    return compute_totals(invoice.lines, invoice.tax_rate, invoice.discount_percent)
