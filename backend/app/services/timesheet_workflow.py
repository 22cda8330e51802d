"""
Timesheet lifecycle: DRAFT → SUBMITTED → APPROVED | REJECTED.

APPROVED and REJECTED are terminal. There is no path from REJECTED back to
DRAFT; a rejected sheet is deleted and a new one created.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from app.models.timesheet import Timesheet, TimesheetEntry, TimesheetStatus
from app.services.errors import WorkflowError, FieldValidationError

logger = logging.getLogger(__name__)

TRANSITIONS: dict[TimesheetStatus, frozenset[TimesheetStatus]] = {
    TimesheetStatus.DRAFT: frozenset({TimesheetStatus.SUBMITTED}),
    TimesheetStatus.SUBMITTED: frozenset({TimesheetStatus.APPROVED, TimesheetStatus.REJECTED}),
    TimesheetStatus.APPROVED: frozenset(),
    TimesheetStatus.REJECTED: frozenset(),
}

EDITABLE = frozenset({TimesheetStatus.DRAFT})
DELETABLE = frozenset({TimesheetStatus.DRAFT, TimesheetStatus.REJECTED})

MAX_ENTRY_HOURS = 24


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def can_transition(current: TimesheetStatus, target: TimesheetStatus) -> bool:
    return target in TRANSITIONS[current]


def _move(timesheet: Timesheet, target: TimesheetStatus, verb: str) -> TimesheetStatus:
    current = TimesheetStatus(timesheet.status)
    if not can_transition(current, target):
        sources = sorted(s.value.lower() for s, targets in TRANSITIONS.items() if target in targets)
        raise WorkflowError(
            f"Only {' or '.join(sources)} timesheets can be {verb} (status={current.value})"
        )
    timesheet.status = target.value
    logger.info("Timesheet %s: %s -> %s", timesheet.id, current.value, target.value)
    return current


# ---------- validation ----------

def validate_period(period_start: date, period_end: date) -> None:
    if period_end <= period_start:
        raise FieldValidationError("period_end", "Period end must be after period start")


def validate_entries(entries: Iterable[TimesheetEntry], period_start: date, period_end: date) -> None:
    for entry in entries:
        if entry.hours is None or entry.hours < 0 or entry.hours > MAX_ENTRY_HOURS:
            raise FieldValidationError("entries", f"Entry hours must be between 0 and {MAX_ENTRY_HOURS}")
        if entry.date is not None and not (period_start <= entry.date <= period_end):
            raise FieldValidationError(
                "entries", f"Entry date {entry.date.isoformat()} is outside the timesheet period"
            )


def has_billable_entry(entries: Iterable[TimesheetEntry]) -> bool:
    return any(e.date is not None and e.hours is not None and e.hours > 0 for e in entries)


def build_entries(raw_entries: Iterable) -> list[TimesheetEntry]:
    """Turn request entry models (date, hours, description) into ordered rows."""
    return [
        TimesheetEntry(
            position=i,
            date=raw.date,
            hours=raw.hours,
            description=raw.description or "",
        )
        for i, raw in enumerate(raw_entries)
    ]


def ensure_editable(timesheet: Timesheet) -> None:
    if TimesheetStatus(timesheet.status) not in EDITABLE:
        raise WorkflowError("Only draft timesheets can be updated. Please create a new timesheet.")


def ensure_deletable(timesheet: Timesheet) -> None:
    if TimesheetStatus(timesheet.status) not in DELETABLE:
        raise WorkflowError("Only draft or rejected timesheets can be deleted")


# ---------- transitions ----------

def submit(timesheet: Timesheet, now: Optional[datetime] = None) -> Timesheet:
    if TimesheetStatus(timesheet.status) is TimesheetStatus.DRAFT:
        validate_period(timesheet.period_start, timesheet.period_end)
        if not has_billable_entry(timesheet.entries):
            raise WorkflowError("Cannot submit a timesheet without at least one dated entry with hours > 0")
    _move(timesheet, TimesheetStatus.SUBMITTED, "submitted")
    timesheet.submitted_at = now or _now_utc()
    return timesheet


def approve(timesheet: Timesheet, approver_id: uuid.UUID, now: Optional[datetime] = None) -> Timesheet:
    _move(timesheet, TimesheetStatus.APPROVED, "approved")
    timesheet.approved_at = now or _now_utc()
    timesheet.approved_by = approver_id
    timesheet.rejection_reason = None
    return timesheet


def reject(timesheet: Timesheet, reason: Optional[str]) -> Timesheet:
    reason = (reason or "").strip()
    if not reason:
        raise FieldValidationError("rejection_reason", "A rejection reason is required")
    _move(timesheet, TimesheetStatus.REJECTED, "rejected")
    timesheet.rejection_reason = reason
    timesheet.approved_at = None
    timesheet.approved_by = None
    return timesheet
