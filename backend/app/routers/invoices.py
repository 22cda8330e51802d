"""Invoices router: supplier invoices, generation from approved timesheets, payment tracking."""

import uuid
import logging
from datetime import date, timedelta
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_user_id, get_current_org_id, require_permission
from app.models.contract import Contract
from app.models.engagement import Engagement
from app.models.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from app.models.project import Project
from app.models.supplier import Supplier, Contractor
from app.models.timesheet import Timesheet, TimesheetStatus
from app.schemas.common import Page
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceGenerate,
    InvoiceReject,
    InvoiceMarkPaid,
    InvoiceResponse,
)
from app.services import billing, csv_export, org_scope
from app.services import invoice_workflow as workflow
from app.services.audit import log_action
from app.services.errors import FieldValidationError, WorkflowError
from app.services.pagination import PageParams, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/invoices", tags=["Invoices"])

DEFAULT_PAYMENT_TERMS_DAYS = 30


# ── helpers ──


def _build_line_items(db: Session, org_id: uuid.UUID, raw_items) -> list[InvoiceLineItem]:
    items = []
    for i, raw in enumerate(raw_items):
        if raw.project_id:
            org_scope.get_or_404(db, Project, org_id, raw.project_id)
        items.append(InvoiceLineItem(
            position=i,
            description=raw.description.strip(),
            quantity=raw.quantity,
            unit_price=raw.unit_price,
            amount=billing.line_amount(raw.quantity, raw.unit_price),
            project_id=raw.project_id,
        ))
    return items


def _apply_totals(invoice: Invoice) -> None:
    invoice.amount, invoice.tax_amount, invoice.total_amount = billing.invoice_totals(
        Decimal(item.amount) for item in invoice.line_items
    )


def _ensure_number_free(db: Session, org_id: uuid.UUID, number: str) -> None:
    if org_scope.invoices(db, org_id).filter(Invoice.invoice_number == number).first():
        raise HTTPException(status_code=409, detail="Invoice number already exists")


def _billable_timesheets(db: Session, org_id: uuid.UUID, timesheet_ids: list[uuid.UUID]) -> list[Timesheet]:
    """Approved, not yet invoiced timesheets, all from one supplier."""
    ids = list(dict.fromkeys(timesheet_ids))
    rows = (
        org_scope.timesheets(db, org_id)
        .add_columns(Contractor.supplier_id)
        .filter(Timesheet.id.in_(ids))
        .all()
    )
    if len(rows) != len(ids):
        raise HTTPException(status_code=404, detail="One or more timesheets not found")

    suppliers = {supplier_id for _, supplier_id in rows}
    if len(suppliers) > 1:
        raise WorkflowError("All timesheets must belong to contractors of the same supplier")
    for ts, _ in rows:
        if ts.status != TimesheetStatus.APPROVED.value:
            raise WorkflowError(f"Timesheet {ts.id} is not approved (status={ts.status})")
        if ts.invoice_id is not None:
            raise WorkflowError(f"Timesheet {ts.id} is already on an invoice")
    return [ts for ts, _ in rows]


def _release_timesheets(invoice: Invoice) -> None:
    for ts in list(invoice.timesheets):
        ts.invoice_id = None
    invoice.timesheets = []


# ── CRUD ──


@router.post("/", response_model=InvoiceResponse, status_code=201)
def create_invoice(
    body: InvoiceCreate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:create")),
    db: Session = Depends(get_db),
):
    supplier = org_scope.get_or_404(db, Supplier, org_id, body.supplier_id)
    if body.engagement_id:
        org_scope.get_or_404(db, Engagement, org_id, body.engagement_id)
    number = body.invoice_number.strip()
    _ensure_number_free(db, org_id, number)

    timesheets = _billable_timesheets(db, org_id, body.timesheet_ids) if body.timesheet_ids else []
    for ts in timesheets:
        contractor = db.get(Contractor, ts.contractor_id)
        if contractor.supplier_id != supplier.id:
            raise WorkflowError("Timesheets must belong to contractors of the invoiced supplier")

    invoice = Invoice(
        org_id=org_id,
        supplier_id=supplier.id,
        engagement_id=body.engagement_id,
        invoice_number=number,
        invoice_date=body.invoice_date,
        due_date=body.due_date,
        period_start=body.period_start,
        period_end=body.period_end,
        currency=body.currency.upper(),
        status=InvoiceStatus.DRAFT.value,
        line_items=_build_line_items(db, org_id, body.line_items),
        timesheets=timesheets,
    )
    _apply_totals(invoice)
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    logger.info("Created invoice %s for supplier %s total=%s", invoice.invoice_number, supplier.id, invoice.total_amount)
    return invoice


@router.post("/generate", response_model=InvoiceResponse, status_code=201)
def generate_invoice(
    body: InvoiceGenerate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:create")),
    db: Session = Depends(get_db),
):
    number = body.invoice_number.strip()
    _ensure_number_free(db, org_id, number)
    timesheets = _billable_timesheets(db, org_id, body.timesheet_ids)
    timesheets.sort(key=lambda ts: ts.period_start)

    items = []
    engagements = []
    for i, ts in enumerate(timesheets):
        engagement = billing.resolve_engagement(db, ts)
        if engagement is None:
            raise WorkflowError(f"No engagement found to price timesheet {ts.id}")
        engagements.append(engagement)
        contractor = db.get(Contractor, ts.contractor_id)
        quantity, unit_price, note = billing.timesheet_billing(ts.total_hours, engagement.rate_type, engagement.rate_amount)
        items.append(InvoiceLineItem(
            position=i,
            description=f"{contractor.full_name} {ts.period_start.isoformat()} to {ts.period_end.isoformat()} ({note})",
            quantity=quantity,
            unit_price=unit_price,
            amount=billing.line_amount(quantity, unit_price),
            project_id=ts.project_id or engagement.project_id,
        ))

    first_contractor = db.get(Contractor, timesheets[0].contractor_id)
    contract = db.get(Contract, engagements[0].contract_id)
    terms = contract.payment_terms_days if contract and contract.payment_terms_days else DEFAULT_PAYMENT_TERMS_DAYS
    invoice_date = body.invoice_date or date.today()
    due_date = body.due_date or invoice_date + timedelta(days=terms)
    if due_date <= invoice_date:
        raise FieldValidationError("due_date", "due_date must be after invoice_date")

    invoice = Invoice(
        org_id=org_id,
        supplier_id=first_contractor.supplier_id,
        engagement_id=engagements[0].id if len({e.id for e in engagements}) == 1 else None,
        invoice_number=number,
        invoice_date=invoice_date,
        due_date=due_date,
        period_start=min(ts.period_start for ts in timesheets),
        period_end=max(ts.period_end for ts in timesheets),
        currency=engagements[0].currency or billing.DEFAULT_CURRENCY,
        status=InvoiceStatus.DRAFT.value,
        line_items=items,
        timesheets=timesheets,
    )
    _apply_totals(invoice)
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    logger.info("Generated invoice %s from %d timesheet(s)", invoice.invoice_number, len(timesheets))
    return invoice


@router.get("/", response_model=Page[InvoiceResponse])
def list_invoices(
    supplier_id: Optional[uuid.UUID] = Query(None),
    status: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:read")),
    db: Session = Depends(get_db),
):
    q = org_scope.invoices(db, org_id)
    if supplier_id:
        q = q.filter(Invoice.supplier_id == supplier_id)
    if status:
        q = q.filter(Invoice.status == status)
    return paginate(q, params, Invoice.invoice_date.desc(), Invoice.invoice_number)


@router.get("/export.csv")
def export_invoices(
    status: Optional[str] = Query(None),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:read")),
    db: Session = Depends(get_db),
):
    q = (
        org_scope.invoices(db, org_id)
        .join(Supplier, Invoice.supplier_id == Supplier.id)
        .add_columns(Supplier)
    )
    if status:
        q = q.filter(Invoice.status == status)
    rows = q.order_by(Invoice.invoice_date, Invoice.invoice_number).all()
    body = csv_export.render(rows, csv_export.INVOICE_HEADERS,
                             lambda r: csv_export.invoice_row(r[0], r[1].display_name))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="invoices.csv"'},
    )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:read")),
    db: Session = Depends(get_db),
):
    return org_scope.get_or_404(db, Invoice, org_id, invoice_id)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: uuid.UUID,
    body: InvoiceUpdate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:update")),
    db: Session = Depends(get_db),
):
    invoice = org_scope.get_or_404(db, Invoice, org_id, invoice_id)
    workflow.ensure_editable(invoice)

    for field, value in body.model_dump(exclude_unset=True, exclude={"line_items"}).items():
        setattr(invoice, field, value)
    if invoice.due_date <= invoice.invoice_date:
        raise FieldValidationError("due_date", "due_date must be after invoice_date")
    if invoice.period_end < invoice.period_start:
        raise FieldValidationError("period_end", "period_end must not be before period_start")

    if body.line_items is not None:
        invoice.line_items = _build_line_items(db, org_id, body.line_items)
        _apply_totals(invoice)

    db.commit()
    db.refresh(invoice)
    return invoice


@router.delete("/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:delete")),
    db: Session = Depends(get_db),
):
    invoice = org_scope.get_or_404(db, Invoice, org_id, invoice_id)
    workflow.ensure_deletable(invoice)
    _release_timesheets(invoice)
    db.delete(invoice)
    db.commit()
    return Response(status_code=204)


# ── Status transitions ──


@router.patch("/{invoice_id}/submit", response_model=InvoiceResponse)
def submit_invoice(
    invoice_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:submit")),
    db: Session = Depends(get_db),
):
    invoice = org_scope.get_or_404(db, Invoice, org_id, invoice_id)
    workflow.submit(invoice)
    log_action(db, org_id, user_id, "submit", "invoice", invoice.id, {"total_amount": str(invoice.total_amount)})
    db.commit()
    db.refresh(invoice)
    return invoice


@router.patch("/{invoice_id}/approve", response_model=InvoiceResponse)
def approve_invoice(
    invoice_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:approve")),
    db: Session = Depends(get_db),
):
    invoice = org_scope.get_or_404(db, Invoice, org_id, invoice_id)
    workflow.approve(invoice, user_id)
    log_action(db, org_id, user_id, "approve", "invoice", invoice.id)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.patch("/{invoice_id}/reject", response_model=InvoiceResponse)
def reject_invoice(
    invoice_id: uuid.UUID,
    body: InvoiceReject,
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:approve")),
    db: Session = Depends(get_db),
):
    invoice = org_scope.get_or_404(db, Invoice, org_id, invoice_id)
    workflow.reject(invoice, body.rejection_reason)
    log_action(db, org_id, user_id, "reject", "invoice", invoice.id, {"reason": invoice.rejection_reason})
    db.commit()
    db.refresh(invoice)
    return invoice


@router.patch("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
def mark_invoice_paid(
    invoice_id: uuid.UUID,
    body: InvoiceMarkPaid,
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:pay")),
    db: Session = Depends(get_db),
):
    invoice = org_scope.get_or_404(db, Invoice, org_id, invoice_id)
    workflow.mark_paid(invoice, body.paid_amount, body.payment_reference, body.paid_at)
    log_action(db, org_id, user_id, "mark_paid", "invoice", invoice.id,
               {"paid_amount": str(invoice.paid_amount), "payment_reference": invoice.payment_reference})
    db.commit()
    db.refresh(invoice)
    return invoice


@router.patch("/{invoice_id}/cancel", response_model=InvoiceResponse)
def cancel_invoice(
    invoice_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("invoices:cancel")),
    db: Session = Depends(get_db),
):
    invoice = org_scope.get_or_404(db, Invoice, org_id, invoice_id)
    workflow.cancel(invoice)
    # cancelled invoices give their timesheets back for re-invoicing
    _release_timesheets(invoice)
    log_action(db, org_id, user_id, "cancel", "invoice", invoice.id)
    db.commit()
    db.refresh(invoice)
    return invoice
