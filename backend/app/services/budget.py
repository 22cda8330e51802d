"""
Project budget read model.

Nothing here is persisted: spend and utilization are recomputed from
invoices and approved timesheets on every read.
"""

import enum
import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.orm import Session

from app.models.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from app.models.project import Project
from app.models.timesheet import Timesheet, TimesheetStatus
from app.services.billing import money, resolve_engagement, timesheet_cost

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = Decimal("80")
EXCEEDED_THRESHOLD = Decimal("100")

SPENT_STATUSES = (InvoiceStatus.APPROVED.value, InvoiceStatus.PAID.value)
NOT_INVOICED_STATUSES = (InvoiceStatus.CANCELLED.value, InvoiceStatus.REJECTED.value)


class BudgetBand(str, enum.Enum):
    NOMINAL = "nominal"
    WARNING = "warning"
    EXCEEDED = "exceeded"


def utilization(budget: Optional[Decimal], spent: Decimal) -> Decimal:
    """Percent of budget spent; 0 when there is no budget to divide by."""
    budget = Decimal(str(budget or 0))
    if budget == 0:
        return Decimal("0")
    return (Decimal(str(spent)) / budget * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def remaining(budget: Optional[Decimal], spent: Decimal) -> Decimal:
    return money(budget) - money(spent)


def classify(pct: Decimal) -> BudgetBand:
    if pct >= EXCEEDED_THRESHOLD:
        return BudgetBand.EXCEEDED
    if pct >= WARNING_THRESHOLD:
        return BudgetBand.WARNING
    return BudgetBand.NOMINAL


def invoice_share(invoice: Invoice, project_amount: Decimal) -> Decimal:
    """A project's part of an invoice: its own line amounts plus the matching slice of tax."""
    project_amount = Decimal(str(project_amount))
    net = Decimal(str(invoice.amount or 0))
    if net == 0:
        return money(project_amount)
    tax = Decimal(str(invoice.tax_amount or 0)) * project_amount / net
    return money(project_amount + tax)


def paid_share(invoice: Invoice, share: Decimal) -> Decimal:
    total = Decimal(str(invoice.total_amount or 0))
    if invoice.paid_amount is None or total == 0:
        return money(share)
    return money(share * Decimal(str(invoice.paid_amount)) / total)


def _project_shares(db: Session, org_id: uuid.UUID, project_id: uuid.UUID) -> dict[uuid.UUID, tuple[Invoice, Decimal]]:
    """Invoices carrying line items for the project, with the net amount of those items."""
    rows = (
        db.query(InvoiceLineItem, Invoice)
        .join(Invoice, Invoice.id == InvoiceLineItem.invoice_id)
        .filter(Invoice.org_id == org_id, InvoiceLineItem.project_id == project_id)
        .all()
    )
    shares: dict[uuid.UUID, tuple[Invoice, Decimal]] = {}
    for item, invoice in rows:
        _, net = shares.get(invoice.id, (invoice, Decimal("0")))
        shares[invoice.id] = (invoice, net + Decimal(str(item.amount)))
    return shares


def project_budget_summary(db: Session, org_id: uuid.UUID, project: Project) -> dict:
    shares = _project_shares(db, org_id, project.id)

    invoiced_spend = total_invoiced = total_paid = Decimal("0")
    spent_invoice_ids = set()
    for invoice_id, (invoice, net) in shares.items():
        share = invoice_share(invoice, net)
        if invoice.status in SPENT_STATUSES:
            invoiced_spend += share
            spent_invoice_ids.add(invoice_id)
        if invoice.status not in NOT_INVOICED_STATUSES:
            total_invoiced += share
        if invoice.status == InvoiceStatus.PAID.value:
            total_paid += paid_share(invoice, share)

    approved = (
        db.query(Timesheet)
        .filter(Timesheet.project_id == project.id, Timesheet.status == TimesheetStatus.APPROVED.value)
        .all()
    )
    approved_hours = sum((ts.total_hours for ts in approved), Decimal("0"))
    # rate cost counts until an approved or paid invoice bills it to this project
    unbilled_cost = sum(
        (
            timesheet_cost(ts, resolve_engagement(db, ts))
            for ts in approved
            if ts.invoice_id not in spent_invoice_ids
        ),
        Decimal("0"),
    )

    spent = money(invoiced_spend + unbilled_cost)
    pct = utilization(project.budget, spent)
    logger.debug("Project %s budget=%s spent=%s utilization=%s", project.id, project.budget, spent, pct)

    return {
        "project_id": project.id,
        "code": project.code,
        "name": project.name,
        "currency": project.currency,
        "budget": money(project.budget) if project.budget is not None else None,
        "total_spent": spent,
        "remaining": remaining(project.budget, spent),
        "utilization": pct,
        "band": classify(pct).value,
        "total_invoiced": money(total_invoiced),
        "total_paid": money(total_paid),
        "approved_hours": approved_hours,
        "approved_timesheets": len(approved),
        "invoice_count": len(shares),
    }
