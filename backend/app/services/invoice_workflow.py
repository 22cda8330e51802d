"""
Invoice lifecycle.

    DRAFT ──submit──▶ SUBMITTED ──approve──▶ APPROVED ──mark_paid──▶ PAID
                          │  └──mark_paid──────────────────────────▲
                          └──reject──▶ REJECTED

Any status except PAID (and CANCELLED itself) can be cancelled.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from app.models.invoice import Invoice, InvoiceStatus
from app.services.errors import WorkflowError, FieldValidationError

logger = logging.getLogger(__name__)

TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SUBMITTED, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SUBMITTED: frozenset({
        InvoiceStatus.APPROVED, InvoiceStatus.REJECTED, InvoiceStatus.PAID, InvoiceStatus.CANCELLED,
    }),
    InvoiceStatus.APPROVED: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.REJECTED: frozenset({InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}

EDITABLE = frozenset({InvoiceStatus.DRAFT})
DELETABLE = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.REJECTED})

DEFAULT_REJECTION_REASON = "Rejected by approver"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target in TRANSITIONS[current]


def _move(invoice: Invoice, target: InvoiceStatus, verb: str) -> None:
    current = InvoiceStatus(invoice.status)
    if not can_transition(current, target):
        sources = sorted(s.value.lower() for s, targets in TRANSITIONS.items() if target in targets)
        raise WorkflowError(f"Only {' or '.join(sources)} invoices can be {verb} (status={current.value})")
    invoice.status = target.value
    logger.info("Invoice %s (%s): %s -> %s", invoice.id, invoice.invoice_number, current.value, target.value)


def ensure_editable(invoice: Invoice) -> None:
    if InvoiceStatus(invoice.status) not in EDITABLE:
        raise WorkflowError("Only draft invoices can be updated. Please create a new invoice.")


def ensure_deletable(invoice: Invoice) -> None:
    if InvoiceStatus(invoice.status) not in DELETABLE:
        raise WorkflowError("Only draft or rejected invoices can be deleted")


def submit(invoice: Invoice, now: Optional[datetime] = None) -> Invoice:
    if InvoiceStatus(invoice.status) is InvoiceStatus.DRAFT and not invoice.line_items:
        raise WorkflowError("Cannot submit invoice with no line items")
    _move(invoice, InvoiceStatus.SUBMITTED, "submitted")
    invoice.submitted_at = now or _now_utc()
    return invoice


def approve(invoice: Invoice, approver_id: uuid.UUID, now: Optional[datetime] = None) -> Invoice:
    _move(invoice, InvoiceStatus.APPROVED, "approved")
    invoice.approved_at = now or _now_utc()
    invoice.approved_by = approver_id
    invoice.rejection_reason = None
    return invoice


def reject(invoice: Invoice, reason: Optional[str] = None) -> Invoice:
    _move(invoice, InvoiceStatus.REJECTED, "rejected")
    invoice.rejection_reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
    invoice.approved_at = None
    invoice.approved_by = None
    return invoice


def mark_paid(
    invoice: Invoice,
    paid_amount: Optional[Decimal],
    payment_reference: Optional[str],
    paid_at: Optional[datetime] = None,
) -> Invoice:
    if paid_amount is None or paid_amount <= 0:
        raise FieldValidationError("paid_amount", "A positive paid amount is required")
    reference = (payment_reference or "").strip()
    if not reference:
        raise FieldValidationError("payment_reference", "A payment reference is required")
    _move(invoice, InvoiceStatus.PAID, "marked as paid")
    invoice.paid_amount = paid_amount
    invoice.payment_reference = reference
    invoice.paid_at = paid_at or _now_utc()
    return invoice


def cancel(invoice: Invoice) -> Invoice:
    if InvoiceStatus(invoice.status) is InvoiceStatus.PAID:
        raise WorkflowError("Cannot cancel a paid invoice")
    _move(invoice, InvoiceStatus.CANCELLED, "cancelled")
    return invoice
