from datetime import date

import pytest

from smb_facturation.invoices import (
    apply_payment,
    cancel,
    create_invoice,
    default_due_date,
    is_valid_invoice,
    mark_sent,
    refresh_overdue,
)
from smb_facturation.models import (
    Client,
    InvoiceNumberState,
    InvoiceStatus,
    LineItem,
    PaymentTerms,
)

CLIENT = Client(name="Dupont", company="Acme", email="contact@acme.fr")
LINES = [LineItem(designation="Ananas", quantity=10, unit_price=2.5)]


def _draft(issue_date: date = date(2025, 3, 1)):
    invoice, _ = create_invoice(InvoiceNumberState(next_sequence=5), CLIENT, issue_date, LINES)
    return invoice


def test_create_invoice_numbers_and_defaults() -> None:
    state = InvoiceNumberState(next_sequence=5, prefix="F")

    invoice, new_state = create_invoice(
        state,
        CLIENT,
        date(2025, 3, 1),
        LINES,
        tax_rate=5.5,
        payment_terms=PaymentTerms.CHEQUE,
    )

    assert invoice.number == "03/25-0005-AD"
    assert new_state.next_sequence == 6
    assert invoice.status is InvoiceStatus.DRAFT
    assert invoice.due_date == date(2025, 3, 31)
    assert invoice.tax_rate == 5.5
    assert invoice.payment_terms is PaymentTerms.CHEQUE
    assert invoice.lines == tuple(LINES)


def test_default_due_date() -> None:
    assert default_due_date(date(2025, 1, 15)) == date(2025, 2, 14)
    assert default_due_date(date(2025, 1, 15), delay_days=45) == date(2025, 3, 1)


def test_mark_sent_only_from_draft() -> None:
    sent = mark_sent(_draft())
    assert sent.status is InvoiceStatus.SENT

    with pytest.raises(ValueError):
        mark_sent(sent)


def test_apply_payment_in_the_past_marks_paid() -> None:
    sent = mark_sent(_draft())

    paid = apply_payment(sent, date(2025, 3, 20), today=date(2025, 3, 21))

    assert paid.status is InvoiceStatus.PAID
    assert paid.payment_date == date(2025, 3, 20)
    # The input invoice is unchanged.
    assert sent.status is InvoiceStatus.SENT
    assert sent.payment_date is None


def test_apply_payment_today_marks_paid() -> None:
    paid = apply_payment(_draft(), date(2025, 3, 21), today=date(2025, 3, 21))
    assert paid.status is InvoiceStatus.PAID


def test_apply_future_payment_keeps_status() -> None:
    sent = mark_sent(_draft())

    scheduled = apply_payment(sent, date(2025, 4, 10), today=date(2025, 3, 21))

    assert scheduled.status is InvoiceStatus.SENT
    assert scheduled.payment_date == date(2025, 4, 10)


def test_apply_payment_on_cancelled_invoice_fails() -> None:
    with pytest.raises(ValueError):
        apply_payment(cancel(_draft()), date(2025, 3, 2), today=date(2025, 3, 3))


def test_refresh_overdue() -> None:
    sent = mark_sent(_draft(date(2025, 3, 1)))  # due 2025-03-31

    assert refresh_overdue(sent, today=date(2025, 3, 31)).status is InvoiceStatus.SENT
    assert refresh_overdue(sent, today=date(2025, 4, 1)).status is InvoiceStatus.OVERDUE

    # Drafts and paid invoices are never flagged overdue.
    draft = _draft(date(2025, 3, 1))
    assert refresh_overdue(draft, today=date(2025, 6, 1)) is draft


def test_overdue_invoice_can_still_be_paid() -> None:
    overdue = refresh_overdue(mark_sent(_draft()), today=date(2025, 5, 1))

    paid = apply_payment(overdue, date(2025, 5, 2), today=date(2025, 5, 2))

    assert paid.status is InvoiceStatus.PAID


def test_cancel() -> None:
    assert cancel(_draft()).status is InvoiceStatus.CANCELLED

    paid = apply_payment(_draft(), date(2025, 3, 2), today=date(2025, 3, 2))
    with pytest.raises(ValueError):
        cancel(paid)


def test_is_valid_invoice() -> None:
    assert is_valid_invoice(_draft())

    no_lines, _ = create_invoice(InvoiceNumberState(), CLIENT, date(2025, 3, 1))
    assert not is_valid_invoice(no_lines)

    anonymous, _ = create_invoice(
        InvoiceNumberState(), Client(name="Dupont"), date(2025, 3, 1), LINES
    )
    assert not is_valid_invoice(anonymous)
