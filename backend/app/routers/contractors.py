"""Contractors router."""

import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_org_id, require_permission
from app.models.engagement import Engagement
from app.models.supplier import Supplier, Contractor
from app.models.timesheet import Timesheet
from app.schemas.common import Page
from app.schemas.supplier import ContractorCreate, ContractorUpdate, ContractorResponse
from app.services import csv_export, org_scope
from app.services.pagination import PageParams, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/contractors", tags=["Contractors"])


def _email_taken(db: Session, supplier_id: uuid.UUID, email: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    q = db.query(Contractor).filter(Contractor.supplier_id == supplier_id, Contractor.email == email)
    if exclude_id:
        q = q.filter(Contractor.id != exclude_id)
    return q.first() is not None


@router.post("/", response_model=ContractorResponse, status_code=201)
def create_contractor(
    body: ContractorCreate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contractors:create")),
    db: Session = Depends(get_db),
):
    supplier = org_scope.get_or_404(db, Supplier, org_id, body.supplier_id)
    email = body.email.strip().lower()
    if _email_taken(db, supplier.id, email):
        raise HTTPException(status_code=409, detail="A contractor with this email already exists for this supplier")

    data = body.model_dump()
    data.update(
        email=email,
        worker_classification=body.worker_classification.value,
        engagement_model=body.engagement_model.value,
        tax_residency=body.tax_residency.upper(),
    )
    contractor = Contractor(**data)
    db.add(contractor)
    db.commit()
    db.refresh(contractor)
    logger.info("Created contractor %s for supplier %s", contractor.id, supplier.id)
    return contractor


@router.get("/", response_model=Page[ContractorResponse])
def list_contractors(
    supplier_id: Optional[uuid.UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contractors:read")),
    db: Session = Depends(get_db),
):
    q = org_scope.contractors(db, org_id)
    if supplier_id:
        q = q.filter(Contractor.supplier_id == supplier_id)
    if is_active is not None:
        q = q.filter(Contractor.is_active.is_(is_active))
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Contractor.first_name.ilike(like),
            Contractor.last_name.ilike(like),
            Contractor.email.ilike(like),
        ))
    return paginate(q, params, Contractor.last_name, Contractor.first_name)


@router.get("/export.csv")
def export_contractors(
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contractors:read")),
    db: Session = Depends(get_db),
):
    rows = (
        org_scope.contractors(db, org_id)
        .add_columns(Supplier)
        .order_by(Contractor.last_name, Contractor.first_name)
        .all()
    )
    body = csv_export.render(rows, csv_export.CONTRACTOR_HEADERS,
                             lambda r: csv_export.contractor_row(r[0], r[1].display_name))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="contractors.csv"'},
    )


@router.get("/{contractor_id}", response_model=ContractorResponse)
def get_contractor(
    contractor_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contractors:read")),
    db: Session = Depends(get_db),
):
    return org_scope.get_or_404(db, Contractor, org_id, contractor_id)


@router.patch("/{contractor_id}", response_model=ContractorResponse)
def update_contractor(
    contractor_id: uuid.UUID,
    body: ContractorUpdate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contractors:update")),
    db: Session = Depends(get_db),
):
    contractor = org_scope.get_or_404(db, Contractor, org_id, contractor_id)
    changes = body.model_dump(exclude_unset=True)

    if changes.get("email"):
        changes["email"] = changes["email"].strip().lower()
        if _email_taken(db, contractor.supplier_id, changes["email"], exclude_id=contractor.id):
            raise HTTPException(status_code=409, detail="A contractor with this email already exists for this supplier")
    for key in ("worker_classification", "engagement_model"):
        if changes.get(key) is not None:
            changes[key] = changes[key].value

    for field, value in changes.items():
        setattr(contractor, field, value)
    db.commit()
    db.refresh(contractor)
    return contractor


@router.delete("/{contractor_id}", status_code=204)
def delete_contractor(
    contractor_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contractors:delete")),
    db: Session = Depends(get_db),
):
    contractor = org_scope.get_or_404(db, Contractor, org_id, contractor_id)

    has_history = (
        db.query(Engagement).filter(Engagement.contractor_id == contractor.id).first()
        or db.query(Timesheet).filter(Timesheet.contractor_id == contractor.id).first()
    )
    if has_history:
        # keep the row for the timesheet and engagement history
        contractor.is_active = False
        logger.info("Deactivated contractor %s instead of deleting (has history)", contractor.id)
    else:
        db.delete(contractor)
    db.commit()
    return Response(status_code=204)
