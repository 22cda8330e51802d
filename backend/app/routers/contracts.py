"""Supplier contracts router."""

import uuid
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_org_id, get_current_user_id, require_permission
from app.models.contract import Contract, ContractStatus
from app.models.supplier import Supplier
from app.schemas.common import Page
from app.schemas.contract import ContractCreate, ContractUpdate, ContractResponse
from app.services import csv_export, org_scope
from app.services.audit import log_action
from app.services.errors import FieldValidationError, WorkflowError
from app.services.pagination import PageParams, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/contracts", tags=["Contracts"])


@router.post("/", response_model=ContractResponse, status_code=201)
def create_contract(
    body: ContractCreate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contracts:create")),
    db: Session = Depends(get_db),
):
    org_scope.get_or_404(db, Supplier, org_id, body.supplier_id)
    number = body.contract_number.strip()
    if org_scope.contracts(db, org_id).filter(Contract.contract_number == number).first():
        raise HTTPException(status_code=409, detail="Contract number already exists")

    data = body.model_dump()
    data.update(contract_number=number, contract_type=body.contract_type.value, currency=body.currency.upper())
    contract = Contract(org_id=org_id, status=ContractStatus.DRAFT.value, **data)
    db.add(contract)
    db.commit()
    db.refresh(contract)
    return contract


@router.get("/", response_model=Page[ContractResponse])
def list_contracts(
    supplier_id: Optional[uuid.UUID] = Query(None),
    status: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contracts:read")),
    db: Session = Depends(get_db),
):
    q = org_scope.contracts(db, org_id)
    if supplier_id:
        q = q.filter(Contract.supplier_id == supplier_id)
    if status:
        q = q.filter(Contract.status == status)
    return paginate(q, params, Contract.start_date.desc())


@router.get("/export.csv")
def export_contracts(
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contracts:read")),
    db: Session = Depends(get_db),
):
    rows = (
        org_scope.contracts(db, org_id)
        .join(Supplier, Contract.supplier_id == Supplier.id)
        .add_columns(Supplier)
        .order_by(Contract.contract_number)
        .all()
    )
    body = csv_export.render(rows, csv_export.CONTRACT_HEADERS,
                             lambda r: csv_export.contract_row(r[0], r[1].display_name))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="contracts.csv"'},
    )


@router.get("/{contract_id}", response_model=ContractResponse)
def get_contract(
    contract_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contracts:read")),
    db: Session = Depends(get_db),
):
    return org_scope.get_or_404(db, Contract, org_id, contract_id)


@router.patch("/{contract_id}", response_model=ContractResponse)
def update_contract(
    contract_id: uuid.UUID,
    body: ContractUpdate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("contracts:update")),
    db: Session = Depends(get_db),
):
    contract = org_scope.get_or_404(db, Contract, org_id, contract_id)
    if contract.status in (ContractStatus.TERMINATED.value, ContractStatus.EXPIRED.value):
        raise WorkflowError(f"Cannot update a {contract.status.lower()} contract")

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(contract, field, value)
    if contract.end_date is not None and contract.end_date <= contract.start_date:
        raise FieldValidationError("end_date", "end_date must be after start_date")

    db.commit()
    db.refresh(contract)
    return contract


@router.patch("/{contract_id}/sign", response_model=ContractResponse)
def sign_contract(
    contract_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    user_id: uuid.UUID = Depends(get_current_user_id),
    _: str = Depends(require_permission("contracts:update")),
    db: Session = Depends(get_db),
):
    contract = org_scope.get_or_404(db, Contract, org_id, contract_id)
    if contract.status != ContractStatus.DRAFT.value:
        raise WorkflowError(f"Only draft contracts can be signed (status={contract.status})")

    contract.status = ContractStatus.ACTIVE.value
    contract.signed_at = datetime.now(timezone.utc)
    contract.signed_by = user_id
    log_action(db, org_id, user_id, "sign", "contract", contract.id)
    db.commit()
    db.refresh(contract)
    logger.info("Contract %s signed by %s", contract.contract_number, user_id)
    return contract


@router.patch("/{contract_id}/terminate", response_model=ContractResponse)
def terminate_contract(
    contract_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    user_id: uuid.UUID = Depends(get_current_user_id),
    _: str = Depends(require_permission("contracts:update")),
    db: Session = Depends(get_db),
):
    contract = org_scope.get_or_404(db, Contract, org_id, contract_id)
    if contract.status in (ContractStatus.TERMINATED.value, ContractStatus.EXPIRED.value):
        raise WorkflowError(f"Contract is already {contract.status.lower()}")

    previous = contract.status
    contract.status = ContractStatus.TERMINATED.value
    contract.terminated_at = datetime.now(timezone.utc)
    log_action(db, org_id, user_id, "terminate", "contract", contract.id, {"from": previous})
    db.commit()
    db.refresh(contract)
    logger.info("Contract %s: %s -> TERMINATED", contract.contract_number, previous)
    return contract
