# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Value objects for SMB Facturation.

All records defined here are immutable dataclasses. They carry no lifecycle
of their own: storing, loading and linking them (client <-> invoice <-> lines)
is the job of the caller. Functions in `calculator.py`, `numbering.py` and
`invoices.py` consume these records and return new ones rather than mutating
them in place.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class InvoiceStatus(str, Enum):
    """Invoice status. Values are the labels printed on documents and CSVs."""

    DRAFT = "Brouillon"
    SENT = "Envoyée"
    PAID = "Payée"
    OVERDUE = "En Retard"
    CANCELLED = "Annulée"


class PaymentTerms(str, Enum):
    """Accepted payment methods."""

    TRANSFER = "Virement"
    CHEQUE = "Chèque"
    CASH = "Espèces"
    CARD = "Carte"


@dataclass(frozen=True)
class LineItem:
    """
    One invoice line.

    Attributes:
        designation: Free text label printed on the invoice.
        quantity: Quantity sold (expected >= 0).
        unit_price: Unit price excluding tax (expected >= 0).
        order_reference: Optional customer order reference.
        order_date: Optional customer order date.
        product: Optional product reference, used by statistics only.
    """

    designation: str
    quantity: float
    unit_price: float
    order_reference: Optional[str] = None
    order_date: Optional[date] = None
    product: Optional[str] = None

    @property
    def line_total(self) -> float:
        """Line amount excluding tax (quantity x unit price)."""
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class InvoiceTotals:
    """
    Derived amounts of an invoice. Never stored.

    Attributes:
        subtotal: Sum of line totals, excluding tax (HT).
        tax_amount: VAT applied on the subtotal.
        discount_amount: Discount applied on the tax-inclusive amount.
        total_due: Amount to pay (TTC after discount).
    """

    subtotal: float
    tax_amount: float
    discount_amount: float
    total_due: float


@dataclass(frozen=True)
class InvoiceNumberState:
    """
    Enterprise-level invoice counter.

    `next_sequence` is the sequence number the next generated invoice will
    carry. `prefix` is the enterprise invoice prefix kept alongside the
    counter by the storage layer; it is not part of the generated number.
    """

    next_sequence: int = 1
    prefix: str = ""


@dataclass(frozen=True)
class Client:
    """Customer identity and address."""

    name: str
    company: str = ""
    email: str = ""
    phone: str = ""
    siret: str = ""
    vat_number: str = ""
    street: str = ""
    postal_code: str = ""
    city: str = ""
    country: str = "France"

    @property
    def display_name(self) -> str:
        """'Company - Name' when a company is set, otherwise the name alone."""
        if not self.company:
            return self.name
        return f"{self.company} - {self.name}"

    @property
    def full_address(self) -> str:
        """Multi-line postal address. The country is omitted for France."""
        components: list[str] = []
        if self.street:
            components.append(self.street)

        city_line = " ".join(p for p in (self.postal_code, self.city) if p)
        if city_line:
            components.append(city_line)

        if self.country and self.country != "France":
            components.append(self.country)

        return "\n".join(components)

    @property
    def is_valid(self) -> bool:
        return bool(self.name) and bool(self.email)


@dataclass(frozen=True)
class Invoice:
    """
    An invoice as handed over by the storage layer.

    Rates are percentages (20.0 means 20 %). Transitions between statuses are
    performed by the functions of `invoices.py`, which return new instances.
    """

    number: str
    client: Client
    issue_date: date
    due_date: Optional[date] = None
    payment_date: Optional[date] = None
    tax_rate: float = 20.0
    discount_percent: float = 0.0
    status: InvoiceStatus = InvoiceStatus.DRAFT
    payment_terms: PaymentTerms = PaymentTerms.TRANSFER
    notes: str = ""
    lines: tuple[LineItem, ...] = field(default_factory=tuple)
