"""
Organization scope resolution: which rows a caller's organization can see.

Suppliers, contracts, projects and invoices carry org_id directly.
Contractors are scoped through their supplier, timesheets through their
contractor, engagements through their contract. A row outside the caller's
organization is reported as not found.
"""

import uuid

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.contract import Contract
from app.models.engagement import Engagement
from app.models.invoice import Invoice
from app.models.project import Project
from app.models.supplier import Supplier, Contractor
from app.models.timesheet import Timesheet


def suppliers(db: Session, org_id: uuid.UUID):
    return db.query(Supplier).filter(Supplier.org_id == org_id)


def contractors(db: Session, org_id: uuid.UUID):
    return (
        db.query(Contractor)
        .join(Supplier, Contractor.supplier_id == Supplier.id)
        .filter(Supplier.org_id == org_id)
    )


def contracts(db: Session, org_id: uuid.UUID):
    return db.query(Contract).filter(Contract.org_id == org_id)


def projects(db: Session, org_id: uuid.UUID):
    return db.query(Project).filter(Project.org_id == org_id)


def engagements(db: Session, org_id: uuid.UUID):
    return (
        db.query(Engagement)
        .join(Contract, Engagement.contract_id == Contract.id)
        .filter(Contract.org_id == org_id)
    )


def timesheets(db: Session, org_id: uuid.UUID):
    return (
        db.query(Timesheet)
        .join(Contractor, Timesheet.contractor_id == Contractor.id)
        .join(Supplier, Contractor.supplier_id == Supplier.id)
        .filter(Supplier.org_id == org_id)
    )


def invoices(db: Session, org_id: uuid.UUID):
    return db.query(Invoice).filter(Invoice.org_id == org_id)


_SCOPES = {
    Supplier: (suppliers, "Supplier"),
    Contractor: (contractors, "Contractor"),
    Contract: (contracts, "Contract"),
    Project: (projects, "Project"),
    Engagement: (engagements, "Engagement"),
    Timesheet: (timesheets, "Timesheet"),
    Invoice: (invoices, "Invoice"),
}


def get_or_404(db: Session, model, org_id: uuid.UUID, record_id: uuid.UUID):
    scope, label = _SCOPES[model]
    record = scope(db, org_id).filter(model.id == record_id).first()
    if not record:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return record
