"""Organization dashboard, summary reports and audit trail."""

import uuid
import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_org_id, require_permission
from app.models.audit_log import AuditLog
from app.models.engagement import Engagement
from app.models.invoice import Invoice, InvoiceStatus
from app.models.project import Project, ProjectStatus
from app.models.supplier import Supplier, Contractor, SupplierStatus
from app.models.timesheet import Timesheet, TimesheetStatus
from app.services import org_scope
from app.services.billing import money
from app.services.budget import BudgetBand, project_budget_summary, utilization

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Analytics"])


def _count_by_status(query, column) -> dict[str, int]:
    rows = query.with_entities(column, sa_func.count()).group_by(column).all()
    return {status: count for status, count in rows}


@router.get("/analytics/dashboard")
def dashboard(
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("analytics:read")),
    db: Session = Depends(get_db),
):
    suppliers = _count_by_status(org_scope.suppliers(db, org_id), Supplier.status)
    timesheets = _count_by_status(org_scope.timesheets(db, org_id), Timesheet.status)
    invoices = _count_by_status(org_scope.invoices(db, org_id), Invoice.status)

    outstanding = (
        org_scope.invoices(db, org_id)
        .filter(Invoice.status.in_([InvoiceStatus.SUBMITTED.value, InvoiceStatus.APPROVED.value]))
        .with_entities(sa_func.coalesce(sa_func.sum(Invoice.total_amount), 0))
        .scalar()
    )
    paid = (
        org_scope.invoices(db, org_id)
        .filter(Invoice.status == InvoiceStatus.PAID.value)
        .with_entities(sa_func.coalesce(sa_func.sum(Invoice.total_amount), 0))
        .scalar()
    )

    active_projects = org_scope.projects(db, org_id).filter(Project.status == ProjectStatus.ACTIVE.value).all()
    at_risk = []
    for project in active_projects:
        summary = project_budget_summary(db, org_id, project)
        if summary["band"] != BudgetBand.NOMINAL.value:
            at_risk.append({
                "project_id": str(project.id),
                "code": project.code,
                "utilization": float(summary["utilization"]),
                "band": summary["band"],
            })

    return {
        "suppliers": {
            "total": sum(suppliers.values()),
            "active": suppliers.get(SupplierStatus.ACTIVE.value, 0),
            "pending_approval": suppliers.get(SupplierStatus.PENDING_APPROVAL.value, 0),
        },
        "contractors": {
            "active": org_scope.contractors(db, org_id).filter(Contractor.is_active.is_(True)).count(),
        },
        "timesheets": {
            "by_status": timesheets,
            "awaiting_approval": timesheets.get(TimesheetStatus.SUBMITTED.value, 0),
        },
        "invoices": {
            "by_status": invoices,
            "outstanding_amount": float(money(Decimal(str(outstanding)))),
            "paid_amount": float(money(Decimal(str(paid)))),
        },
        "projects": {
            "active": len(active_projects),
            "over_threshold": at_risk,
        },
    }


# ── summaries ──

def _created_between(query, column, start_date: Optional[date], end_date: Optional[date]):
    """Both bounds are whole days and inclusive."""
    if start_date:
        query = query.filter(column >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(column < datetime.combine(end_date + timedelta(days=1), time.min))
    return query


@router.get("/analytics/financial")
def financial_summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("analytics:read")),
    db: Session = Depends(get_db),
):
    q = _created_between(org_scope.invoices(db, org_id), Invoice.created_at, start_date, end_date)
    rows = (
        q.filter(Invoice.status != InvoiceStatus.CANCELLED.value)
        .with_entities(Invoice.status, Invoice.total_amount)
        .all()
    )
    amounts = [(status, Decimal(str(total))) for status, total in rows]
    pending_statuses = (InvoiceStatus.SUBMITTED.value, InvoiceStatus.APPROVED.value)

    total_invoiced = sum((a for _, a in amounts), Decimal("0"))
    total_paid = sum((a for s, a in amounts if s == InvoiceStatus.PAID.value), Decimal("0"))
    total_pending = sum((a for s, a in amounts if s in pending_statuses), Decimal("0"))
    average = total_invoiced / len(amounts) if amounts else Decimal("0")

    return {
        "total_invoiced": float(money(total_invoiced)),
        "total_paid": float(money(total_paid)),
        "total_pending": float(money(total_pending)),
        "invoice_count": len(amounts),
        "average_invoice_amount": float(money(average)),
    }


@router.get("/analytics/contractors")
def contractor_summary(
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("analytics:read")),
    db: Session = Depends(get_db),
):
    contractors = org_scope.contractors(db, org_id)
    total = contractors.count()
    active = contractors.filter(Contractor.is_active.is_(True)).count()
    return {
        "total_contractors": total,
        "active_contractors": active,
        "inactive_contractors": total - active,
        "active_engagements": org_scope.engagements(db, org_id).filter(Engagement.is_active.is_(True)).count(),
        "supplier_count": org_scope.suppliers(db, org_id).count(),
    }


@router.get("/analytics/projects")
def project_summary(
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("analytics:read")),
    db: Session = Depends(get_db),
):
    projects = org_scope.projects(db, org_id).all()
    total_budget = sum((Decimal(str(p.budget)) for p in projects if p.budget is not None), Decimal("0"))
    total_utilized = sum(
        (project_budget_summary(db, org_id, p)["total_spent"] for p in projects), Decimal("0")
    )
    return {
        "total_projects": len(projects),
        "active_projects": sum(1 for p in projects if p.status == ProjectStatus.ACTIVE.value),
        "completed_projects": sum(1 for p in projects if p.status == ProjectStatus.COMPLETED.value),
        "total_budget": float(money(total_budget)),
        "total_utilized": float(money(total_utilized)),
        "average_utilization": float(utilization(total_budget, total_utilized)),
    }


@router.get("/analytics/timesheets")
def timesheet_summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("analytics:read")),
    db: Session = Depends(get_db),
):
    timesheets = _created_between(org_scope.timesheets(db, org_id), Timesheet.created_at, start_date, end_date).all()
    statuses = [ts.status for ts in timesheets]
    return {
        "total_timesheets": len(timesheets),
        "pending_approval": statuses.count(TimesheetStatus.SUBMITTED.value),
        "approved": statuses.count(TimesheetStatus.APPROVED.value),
        "rejected": statuses.count(TimesheetStatus.REJECTED.value),
        "total_hours": float(sum((ts.total_hours for ts in timesheets), Decimal("0"))),
    }

@router.get("/audit-log")
def list_audit_log(
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("audit:read")),
    db: Session = Depends(get_db),
):
    q = db.query(AuditLog).filter(AuditLog.org_id == org_id)
    if resource_type:
        q = q.filter(AuditLog.resource_type == resource_type)
    if resource_id:
        q = q.filter(AuditLog.resource_id == resource_id)
    rows = q.order_by(AuditLog.created_at.desc()).limit(limit).all()
    return [
        {
            "id": str(r.id),
            "user_id": str(r.user_id) if r.user_id else None,
            "action": r.action,
            "resource_type": r.resource_type,
            "resource_id": r.resource_id,
            "details": r.details,
            "created_at": r.created_at.isoformat() if r.created_at else None,
        }
        for r in rows
    ]
