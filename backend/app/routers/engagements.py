"""Engagements router: a contractor placed on a project under a contract."""

import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_org_id, require_permission
from app.models.contract import Contract, ContractStatus
from app.models.engagement import Engagement
from app.models.project import Project
from app.models.supplier import Contractor
from app.models.timesheet import Timesheet
from app.schemas.common import Page
from app.schemas.engagement import EngagementCreate, EngagementUpdate, EngagementResponse
from app.services import org_scope
from app.services.errors import FieldValidationError, WorkflowError
from app.services.pagination import PageParams, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/engagements", tags=["Engagements"])


@router.post("/", response_model=EngagementResponse, status_code=201)
def create_engagement(
    body: EngagementCreate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("engagements:create")),
    db: Session = Depends(get_db),
):
    contractor = org_scope.get_or_404(db, Contractor, org_id, body.contractor_id)
    contract = org_scope.get_or_404(db, Contract, org_id, body.contract_id)
    if body.project_id:
        org_scope.get_or_404(db, Project, org_id, body.project_id)

    if not contractor.is_active:
        raise WorkflowError("Cannot engage an inactive contractor")
    if contract.status != ContractStatus.ACTIVE.value:
        raise WorkflowError(f"Contract must be active to create engagements (status={contract.status})")

    data = body.model_dump()
    data.update(rate_type=body.rate_type.value, currency=body.currency.upper())
    engagement = Engagement(**data)
    db.add(engagement)
    db.commit()
    db.refresh(engagement)
    logger.info("Engaged contractor %s on contract %s", contractor.id, contract.contract_number)
    return engagement


@router.get("/", response_model=Page[EngagementResponse])
def list_engagements(
    contractor_id: Optional[uuid.UUID] = Query(None),
    project_id: Optional[uuid.UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    params: PageParams = Depends(page_params),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("engagements:read")),
    db: Session = Depends(get_db),
):
    q = org_scope.engagements(db, org_id)
    if contractor_id:
        q = q.filter(Engagement.contractor_id == contractor_id)
    if project_id:
        q = q.filter(Engagement.project_id == project_id)
    if is_active is not None:
        q = q.filter(Engagement.is_active.is_(is_active))
    return paginate(q, params, Engagement.start_date.desc())


@router.get("/{engagement_id}", response_model=EngagementResponse)
def get_engagement(
    engagement_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("engagements:read")),
    db: Session = Depends(get_db),
):
    return org_scope.get_or_404(db, Engagement, org_id, engagement_id)


@router.patch("/{engagement_id}", response_model=EngagementResponse)
def update_engagement(
    engagement_id: uuid.UUID,
    body: EngagementUpdate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("engagements:update")),
    db: Session = Depends(get_db),
):
    engagement = org_scope.get_or_404(db, Engagement, org_id, engagement_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("project_id"):
        org_scope.get_or_404(db, Project, org_id, changes["project_id"])
    if changes.get("rate_type") is not None:
        changes["rate_type"] = changes["rate_type"].value

    for field, value in changes.items():
        setattr(engagement, field, value)
    if engagement.end_date is not None and engagement.end_date <= engagement.start_date:
        raise FieldValidationError("end_date", "end_date must be after start_date")

    db.commit()
    db.refresh(engagement)
    return engagement


@router.patch("/{engagement_id}/deactivate", response_model=EngagementResponse)
def deactivate_engagement(
    engagement_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("engagements:update")),
    db: Session = Depends(get_db),
):
    engagement = org_scope.get_or_404(db, Engagement, org_id, engagement_id)
    if not engagement.is_active:
        raise WorkflowError("Engagement is already inactive")
    engagement.is_active = False
    db.commit()
    db.refresh(engagement)
    return engagement


@router.delete("/{engagement_id}", status_code=204)
def delete_engagement(
    engagement_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("engagements:delete")),
    db: Session = Depends(get_db),
):
    engagement = org_scope.get_or_404(db, Engagement, org_id, engagement_id)
    if db.query(Timesheet).filter(Timesheet.engagement_id == engagement.id).first():
        raise HTTPException(status_code=400, detail="Cannot delete engagement with timesheets. Deactivate it instead.")
    db.delete(engagement)
    db.commit()
    return Response(status_code=204)
