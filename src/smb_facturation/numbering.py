# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Sequential invoice numbering.

Invoice numbers have the form:

    MM/YY-NNNN-XX

- MM:   two-digit month of the issue date,
- YY:   two-digit year of the issue date (year modulo 100),
- NNNN: the counter's sequence number, zero-padded to 4 digits,
- XX:   up to two client initials (see `client_initials`).

The counter is an explicit value: `generate_invoice_number` never mutates the
state it receives, it returns the updated state next to the number. Storing
that state (and serializing concurrent writers) is the caller's job; see
`db.issue_invoice_number` for the SQLite implementation.
"""

import re
from dataclasses import replace
from datetime import date

from .models import Client, InvoiceNumberState

INVOICE_NUMBER_PATTERN = re.compile(r"^\d{2}/\d{2}-\d{4,}-[A-Z]{0,2}$")

UNKNOWN_INITIALS = "XX"


def client_initials(company: str, name: str) -> str:
    """
    Return the billing initials of a client.

    - With a company: first letter of the company, followed by the first
      letter of the personal name if there is one.
    - Without a company: first letter of the personal name, or "XX" when the
      name is empty as well.

    Surrounding whitespace is ignored and letters are uppercased.
    """
    name_initial = name.strip()[:1].upper()
    company_initial = company.strip()[:1].upper()

    if company_initial:
        return company_initial + name_initial
    return name_initial or UNKNOWN_INITIALS


def initials_for(client: Client) -> str:
    """Shortcut for `client_initials(client.company, client.name)`."""
    return client_initials(client.company, client.name)


def format_invoice_number(sequence: int, initials: str, issue_date: date) -> str:
    """Format an invoice number without touching any counter."""
    return (
        f"{issue_date.month:02d}/{issue_date.year % 100:02d}"
        f"-{sequence:04d}-{initials}"
    )


def generate_invoice_number(
    state: InvoiceNumberState,
    initials: str,
    issue_date: date,
) -> tuple[str, InvoiceNumberState]:
    """
    Produce the next invoice number.

    Args:
        state: Current counter. `state.next_sequence` is used for this number.
        initials: Client initials, usually from `client_initials`.
        issue_date: Invoice date, gives the month and year parts.

    Returns:
        (number, new_state) where new_state.next_sequence is exactly one more
        than state.next_sequence.
    """
    number = format_invoice_number(state.next_sequence, initials, issue_date)
    return number, replace(state, next_sequence=state.next_sequence + 1)


def reset_annual_sequence(state: InvoiceNumberState) -> InvoiceNumberState:
    """
    Restart numbering at 1.

    Year rollover is not detected here: the caller decides when to reset
    (typically before the first invoice of a new calendar year).
    """
    return replace(state, next_sequence=1)
