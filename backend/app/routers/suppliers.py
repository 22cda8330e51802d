"""Suppliers router."""

import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_org_id, get_current_user_id, require_permission
from app.models.contract import Contract, ContractStatus
from app.models.invoice import Invoice
from app.models.supplier import Supplier, Contractor, SupplierType
from app.schemas.common import Page
from app.schemas.supplier import SupplierCreate, SupplierUpdate, SupplierStatusUpdate, SupplierResponse
from app.services import csv_export, org_scope
from app.services.audit import log_action
from app.services.errors import FieldValidationError
from app.services.pagination import PageParams, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/suppliers", tags=["Suppliers"])


def _email_taken(db: Session, org_id: uuid.UUID, email: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    q = org_scope.suppliers(db, org_id).filter(Supplier.email == email)
    if exclude_id:
        q = q.filter(Supplier.id != exclude_id)
    return q.first() is not None


@router.post("/", response_model=SupplierResponse, status_code=201)
def create_supplier(
    body: SupplierCreate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("suppliers:create")),
    db: Session = Depends(get_db),
):
    email = body.email.strip().lower()
    if _email_taken(db, org_id, email):
        raise HTTPException(status_code=409, detail="A supplier with this email already exists")

    data = body.model_dump()
    data["email"] = email
    data["supplier_type"] = body.supplier_type.value
    data["country"] = body.country.upper()
    if body.supplier_type is SupplierType.INDIVIDUAL:
        data["company_name"] = None
    supplier = Supplier(org_id=org_id, **data)
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    logger.info("Created supplier %s (%s)", supplier.id, supplier.display_name)
    return supplier


@router.get("/", response_model=Page[SupplierResponse])
def list_suppliers(
    status: Optional[str] = Query(None),
    supplier_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("suppliers:read")),
    db: Session = Depends(get_db),
):
    q = org_scope.suppliers(db, org_id)
    if status:
        q = q.filter(Supplier.status == status)
    if supplier_type:
        q = q.filter(Supplier.supplier_type == supplier_type)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Supplier.company_name.ilike(like),
            Supplier.trading_name.ilike(like),
            Supplier.first_name.ilike(like),
            Supplier.last_name.ilike(like),
            Supplier.email.ilike(like),
        ))
    return paginate(q, params, Supplier.created_at.desc())


@router.get("/export.csv")
def export_suppliers(
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("suppliers:read")),
    db: Session = Depends(get_db),
):
    rows = org_scope.suppliers(db, org_id).order_by(Supplier.created_at).all()
    body = csv_export.render(rows, csv_export.SUPPLIER_HEADERS, csv_export.supplier_row)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="suppliers.csv"'},
    )


@router.get("/{supplier_id}", response_model=SupplierResponse)
def get_supplier(
    supplier_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("suppliers:read")),
    db: Session = Depends(get_db),
):
    return org_scope.get_or_404(db, Supplier, org_id, supplier_id)


@router.patch("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: uuid.UUID,
    body: SupplierUpdate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("suppliers:update")),
    db: Session = Depends(get_db),
):
    supplier = org_scope.get_or_404(db, Supplier, org_id, supplier_id)
    changes = body.model_dump(exclude_unset=True)

    if changes.get("email"):
        changes["email"] = changes["email"].strip().lower()
        if _email_taken(db, org_id, changes["email"], exclude_id=supplier.id):
            raise HTTPException(status_code=409, detail="A supplier with this email already exists")

    for field, value in changes.items():
        setattr(supplier, field, value)

    if supplier.supplier_type == SupplierType.COMPANY.value and not (supplier.company_name or "").strip():
        raise FieldValidationError("company_name", "company_name is required for COMPANY suppliers")
    if supplier.supplier_type == SupplierType.INDIVIDUAL.value:
        for field in ("first_name", "last_name"):
            if not (getattr(supplier, field) or "").strip():
                raise FieldValidationError(field, f"{field} is required for INDIVIDUAL suppliers")

    db.commit()
    db.refresh(supplier)
    return supplier


@router.patch("/{supplier_id}/status", response_model=SupplierResponse)
def update_supplier_status(
    supplier_id: uuid.UUID,
    body: SupplierStatusUpdate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    user_id: uuid.UUID = Depends(get_current_user_id),
    _: str = Depends(require_permission("suppliers:update")),
    db: Session = Depends(get_db),
):
    supplier = org_scope.get_or_404(db, Supplier, org_id, supplier_id)
    previous = supplier.status
    supplier.status = body.status.value
    log_action(db, org_id, user_id, "status_change", "supplier", supplier.id,
               {"from": previous, "to": supplier.status})
    db.commit()
    db.refresh(supplier)
    logger.info("Supplier %s: %s -> %s", supplier.id, previous, supplier.status)
    return supplier


@router.delete("/{supplier_id}", status_code=204)
def delete_supplier(
    supplier_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    user_id: uuid.UUID = Depends(get_current_user_id),
    _: str = Depends(require_permission("suppliers:delete")),
    db: Session = Depends(get_db),
):
    supplier = org_scope.get_or_404(db, Supplier, org_id, supplier_id)

    contractor_count = db.query(Contractor).filter(Contractor.supplier_id == supplier.id).count()
    if contractor_count:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete supplier with {contractor_count} contractor(s). Remove them first.",
        )
    active_contracts = db.query(Contract).filter(
        Contract.supplier_id == supplier.id,
        Contract.status == ContractStatus.ACTIVE.value,
    ).count()
    if active_contracts:
        raise HTTPException(status_code=400, detail="Cannot delete supplier with active contracts")
    if db.query(Invoice).filter(Invoice.supplier_id == supplier.id).count():
        raise HTTPException(status_code=400, detail="Cannot delete supplier with invoices. Deactivate it instead.")

    # draft, terminated and expired contracts go with the supplier
    db.query(Contract).filter(Contract.supplier_id == supplier.id).delete(synchronize_session=False)
    log_action(db, org_id, user_id, "delete", "supplier", supplier.id, {"email": supplier.email})
    db.delete(supplier)
    db.commit()
    return Response(status_code=204)
