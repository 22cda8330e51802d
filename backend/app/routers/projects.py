"""Projects router, including the budget utilization read model."""

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
from app.models.project import Project
from app.models.timesheet import Timesheet
from app.schemas.common import Page
from app.schemas.project import ProjectCreate, ProjectUpdate, ProjectResponse, BudgetUtilizationResponse
from app.services import csv_export, org_scope
from app.services.budget import project_budget_summary
from app.services.errors import FieldValidationError
from app.services.pagination import PageParams, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])


@router.post("/", response_model=ProjectResponse, status_code=201)
def create_project(
    body: ProjectCreate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("projects:create")),
    db: Session = Depends(get_db),
):
    code = body.code.strip().upper()
    if org_scope.projects(db, org_id).filter(Project.code == code).first():
        raise HTTPException(status_code=409, detail="Project code already exists")

    data = body.model_dump()
    data.update(code=code, currency=body.currency.upper())
    project = Project(org_id=org_id, **data)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@router.get("/", response_model=Page[ProjectResponse])
def list_projects(
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("projects:read")),
    db: Session = Depends(get_db),
):
    q = org_scope.projects(db, org_id)
    if status:
        q = q.filter(Project.status == status)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Project.code.ilike(like), Project.name.ilike(like), Project.client_name.ilike(like)))
    return paginate(q, params, Project.code)


@router.get("/export.csv")
def export_projects(
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("projects:read")),
    db: Session = Depends(get_db),
):
    rows = org_scope.projects(db, org_id).order_by(Project.code).all()
    body = csv_export.render(rows, csv_export.PROJECT_HEADERS, csv_export.project_row)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="projects.csv"'},
    )


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("projects:read")),
    db: Session = Depends(get_db),
):
    return org_scope.get_or_404(db, Project, org_id, project_id)


@router.get("/{project_id}/budget-utilization", response_model=BudgetUtilizationResponse)
def get_budget_utilization(
    project_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("projects:read")),
    db: Session = Depends(get_db),
):
    project = org_scope.get_or_404(db, Project, org_id, project_id)
    return project_budget_summary(db, org_id, project)


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("projects:update")),
    db: Session = Depends(get_db),
):
    project = org_scope.get_or_404(db, Project, org_id, project_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        changes["status"] = changes["status"].value

    for field, value in changes.items():
        setattr(project, field, value)
    if project.start_date and project.end_date and project.end_date <= project.start_date:
        raise FieldValidationError("end_date", "end_date must be after start_date")

    db.commit()
    db.refresh(project)
    return project


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("projects:delete")),
    db: Session = Depends(get_db),
):
    project = org_scope.get_or_404(db, Project, org_id, project_id)
    if db.query(Engagement).filter(Engagement.project_id == project.id).first():
        raise HTTPException(status_code=400, detail="Cannot delete project with engagements")
    if db.query(Timesheet).filter(Timesheet.project_id == project.id).first():
        raise HTTPException(status_code=400, detail="Cannot delete project with timesheets")

    db.delete(project)
    db.commit()
    logger.info("Deleted project %s (%s)", project.id, project.code)
    return Response(status_code=204)
