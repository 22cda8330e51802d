"""Timesheets router."""

import uuid
import logging
from datetime import date
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_user_id, get_current_org_id, require_permission
from app.models.engagement import Engagement
from app.models.project import Project
from app.models.supplier import Contractor
from app.models.timesheet import Timesheet, TimesheetStatus
from app.schemas.common import Page
from app.schemas.timesheet import TimesheetCreate, TimesheetUpdate, TimesheetReject, TimesheetResponse
from app.services import csv_export, org_scope
from app.services import timesheet_workflow as workflow
from app.services.audit import log_action
from app.services.errors import WorkflowError
from app.services.pagination import PageParams, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/timesheets", tags=["Timesheets"])


def _resolve_links(
    db: Session,
    org_id: uuid.UUID,
    contractor_id: uuid.UUID,
    engagement_id: Optional[uuid.UUID],
    project_id: Optional[uuid.UUID],
) -> Optional[uuid.UUID]:
    """Check engagement/project belong to the org and contractor; return the effective project id."""
    if engagement_id:
        engagement = org_scope.get_or_404(db, Engagement, org_id, engagement_id)
        if engagement.contractor_id != contractor_id:
            raise WorkflowError("Engagement does not belong to this contractor")
        project_id = project_id or engagement.project_id
    if project_id:
        org_scope.get_or_404(db, Project, org_id, project_id)
    return project_id


# ── CRUD ──


@router.post("/", response_model=TimesheetResponse, status_code=201)
def create_timesheet(
    body: TimesheetCreate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:create")),
    db: Session = Depends(get_db),
):
    contractor = org_scope.get_or_404(db, Contractor, org_id, body.contractor_id)
    if not contractor.is_active:
        raise WorkflowError("Cannot create timesheets for an inactive contractor")
    project_id = _resolve_links(db, org_id, contractor.id, body.engagement_id, body.project_id)

    entries = workflow.build_entries(body.entries)
    workflow.validate_entries(entries, body.period_start, body.period_end)

    ts = Timesheet(
        contractor_id=contractor.id,
        engagement_id=body.engagement_id,
        project_id=project_id,
        period_start=body.period_start,
        period_end=body.period_end,
        status=TimesheetStatus.DRAFT.value,
        entries=entries,
    )
    db.add(ts)
    db.commit()
    db.refresh(ts)
    logger.info("Created timesheet %s for contractor %s (%d entries)", ts.id, contractor.id, len(entries))
    return ts


@router.get("/", response_model=Page[TimesheetResponse])
def list_timesheets(
    contractor_id: Optional[uuid.UUID] = Query(None),
    project_id: Optional[uuid.UUID] = Query(None),
    status: Optional[str] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    params: PageParams = Depends(page_params),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:read")),
    db: Session = Depends(get_db),
):
    q = org_scope.timesheets(db, org_id)
    if contractor_id:
        q = q.filter(Timesheet.contractor_id == contractor_id)
    if project_id:
        q = q.filter(Timesheet.project_id == project_id)
    if status:
        q = q.filter(Timesheet.status == status)
    if start:
        q = q.filter(Timesheet.period_end >= start)
    if end:
        q = q.filter(Timesheet.period_start <= end)

    return paginate(q, params, Timesheet.period_start.desc())


@router.get("/export.csv")
def export_timesheets(
    status: Optional[str] = Query(None),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:read")),
    db: Session = Depends(get_db),
):
    q = org_scope.timesheets(db, org_id).add_columns(Contractor)
    if status:
        q = q.filter(Timesheet.status == status)
    rows = q.order_by(Timesheet.period_start).all()
    body = csv_export.render(rows, csv_export.TIMESHEET_HEADERS,
                             lambda r: csv_export.timesheet_row(r[0], r[1].full_name))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="timesheets.csv"'},
    )


@router.get("/{timesheet_id}", response_model=TimesheetResponse)
def get_timesheet(
    timesheet_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:read")),
    db: Session = Depends(get_db),
):
    return org_scope.get_or_404(db, Timesheet, org_id, timesheet_id)


@router.patch("/{timesheet_id}", response_model=TimesheetResponse)
def update_timesheet(
    timesheet_id: uuid.UUID,
    body: TimesheetUpdate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:update")),
    db: Session = Depends(get_db),
):
    ts = org_scope.get_or_404(db, Timesheet, org_id, timesheet_id)
    workflow.ensure_editable(ts)

    changes = body.model_dump(exclude_unset=True, exclude={"entries"})
    period_start = changes.get("period_start", ts.period_start)
    period_end = changes.get("period_end", ts.period_end)
    workflow.validate_period(period_start, period_end)

    if "engagement_id" in changes or "project_id" in changes:
        changes["project_id"] = _resolve_links(
            db, org_id, ts.contractor_id,
            changes.get("engagement_id", ts.engagement_id),
            changes.get("project_id", ts.project_id),
        )

    if body.entries is not None:
        entries = workflow.build_entries(body.entries)
        workflow.validate_entries(entries, period_start, period_end)
        ts.entries = entries
    else:
        workflow.validate_entries(ts.entries, period_start, period_end)

    for field, value in changes.items():
        setattr(ts, field, value)
    db.commit()
    db.refresh(ts)
    return ts


@router.delete("/{timesheet_id}", status_code=204)
def delete_timesheet(
    timesheet_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:delete")),
    db: Session = Depends(get_db),
):
    ts = org_scope.get_or_404(db, Timesheet, org_id, timesheet_id)
    workflow.ensure_deletable(ts)
    db.delete(ts)
    db.commit()
    return Response(status_code=204)


# ── Submit / Approve / Reject ──


@router.patch("/{timesheet_id}/submit", response_model=TimesheetResponse)
def submit_timesheet(
    timesheet_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:submit")),
    db: Session = Depends(get_db),
):
    ts = org_scope.get_or_404(db, Timesheet, org_id, timesheet_id)
    workflow.submit(ts)
    log_action(db, org_id, user_id, "submit", "timesheet", ts.id, {"total_hours": str(ts.total_hours)})
    db.commit()
    db.refresh(ts)
    return ts


@router.patch("/{timesheet_id}/approve", response_model=TimesheetResponse)
def approve_timesheet(
    timesheet_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:approve")),
    db: Session = Depends(get_db),
):
    ts = org_scope.get_or_404(db, Timesheet, org_id, timesheet_id)
    workflow.approve(ts, user_id)
    log_action(db, org_id, user_id, "approve", "timesheet", ts.id)
    db.commit()
    db.refresh(ts)
    return ts


@router.patch("/{timesheet_id}/reject", response_model=TimesheetResponse)
def reject_timesheet(
    timesheet_id: uuid.UUID,
    body: TimesheetReject,
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("timesheets:approve")),
    db: Session = Depends(get_db),
):
    ts = org_scope.get_or_404(db, Timesheet, org_id, timesheet_id)
    workflow.reject(ts, body.rejection_reason)
    log_action(db, org_id, user_id, "reject", "timesheet", ts.id, {"reason": ts.rejection_reason})
    db.commit()
    db.refresh(ts)
    return ts
