import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.models.timesheet import Timesheet, TimesheetEntry, TimesheetStatus
from app.services import timesheet_workflow as wf
from app.services.errors import WorkflowError, FieldValidationError


def _sheet(status=TimesheetStatus.DRAFT, entries=None, start=date(2026, 3, 2), end=date(2026, 3, 8)):
    if entries is None:
        entries = [TimesheetEntry(position=0, date=date(2026, 3, 2), hours=Decimal("8"), description="")]
    return Timesheet(
        contractor_id=uuid.uuid4(),
        period_start=start,
        period_end=end,
        status=status.value,
        entries=entries,
    )


def test_transition_table_covers_every_status():
    assert set(wf.TRANSITIONS) == set(TimesheetStatus)
    assert wf.TRANSITIONS[TimesheetStatus.APPROVED] == frozenset()
    assert wf.TRANSITIONS[TimesheetStatus.REJECTED] == frozenset()


def test_submit_sets_status_and_timestamp():
    ts = _sheet()
    now = datetime(2026, 3, 9, 8, 0, tzinfo=timezone.utc)
    wf.submit(ts, now=now)
    assert ts.status == TimesheetStatus.SUBMITTED.value
    assert ts.submitted_at == now


def test_submit_requires_a_dated_entry_with_hours():
    undated = TimesheetEntry(position=0, date=None, hours=Decimal("8"))
    zero = TimesheetEntry(position=1, date=date(2026, 3, 3), hours=Decimal("0"))
    ts = _sheet(entries=[undated, zero])
    with pytest.raises(WorkflowError):
        wf.submit(ts)
    assert ts.status == TimesheetStatus.DRAFT.value


def test_submit_rejects_inverted_period():
    ts = _sheet(start=date(2026, 3, 8), end=date(2026, 3, 8))
    with pytest.raises(FieldValidationError) as exc:
        wf.submit(ts)
    assert exc.value.field == "period_end"


@pytest.mark.parametrize("status", [TimesheetStatus.SUBMITTED, TimesheetStatus.APPROVED, TimesheetStatus.REJECTED])
def test_submit_only_from_draft(status):
    with pytest.raises(WorkflowError):
        wf.submit(_sheet(status=status))


def test_approve_records_approver_and_clears_rejection():
    ts = _sheet(status=TimesheetStatus.SUBMITTED)
    ts.rejection_reason = "stale"
    approver = uuid.uuid4()
    wf.approve(ts, approver)
    assert ts.status == TimesheetStatus.APPROVED.value
    assert ts.approved_by == approver
    assert ts.approved_at is not None
    assert ts.rejection_reason is None


def test_approve_draft_is_rejected():
    ts = _sheet()
    with pytest.raises(WorkflowError, match="submitted"):
        wf.approve(ts, uuid.uuid4())
    assert ts.status == TimesheetStatus.DRAFT.value


def test_reject_requires_reason():
    ts = _sheet(status=TimesheetStatus.SUBMITTED)
    with pytest.raises(FieldValidationError):
        wf.reject(ts, "   ")
    assert ts.status == TimesheetStatus.SUBMITTED.value

    wf.reject(ts, " Hours on 3 March look wrong ")
    assert ts.status == TimesheetStatus.REJECTED.value
    assert ts.rejection_reason == "Hours on 3 March look wrong"


def test_rejected_cannot_be_resubmitted():
    ts = _sheet(status=TimesheetStatus.REJECTED)
    with pytest.raises(WorkflowError):
        wf.submit(ts)


def test_total_hours_ignores_undated_entries():
    ts = _sheet(entries=[
        TimesheetEntry(position=0, date=date(2026, 3, 2), hours=Decimal("7.5")),
        TimesheetEntry(position=1, date=None, hours=Decimal("4")),
        TimesheetEntry(position=2, date=date(2026, 3, 4), hours=Decimal("2.25")),
    ])
    assert ts.total_hours == Decimal("9.75")


def test_validate_entries_checks_period_and_hours():
    start, end = date(2026, 3, 2), date(2026, 3, 8)
    outside = TimesheetEntry(date=date(2026, 3, 9), hours=Decimal("1"))
    with pytest.raises(FieldValidationError, match="outside"):
        wf.validate_entries([outside], start, end)

    too_many = TimesheetEntry(date=date(2026, 3, 3), hours=Decimal("25"))
    with pytest.raises(FieldValidationError):
        wf.validate_entries([too_many], start, end)

    wf.validate_entries([TimesheetEntry(date=None, hours=Decimal("3"))], start, end)


def test_build_entries_keeps_order():
    raw = [
        SimpleNamespace(date=date(2026, 3, 3), hours=Decimal("2"), description=None),
        SimpleNamespace(date=date(2026, 3, 2), hours=Decimal("5"), description="standup"),
    ]
    entries = wf.build_entries(raw)
    assert [e.position for e in entries] == [0, 1]
    assert entries[0].description == ""
    assert entries[1].date == date(2026, 3, 2)


def test_edit_and_delete_guards():
    wf.ensure_editable(_sheet())
    with pytest.raises(WorkflowError):
        wf.ensure_editable(_sheet(status=TimesheetStatus.SUBMITTED))

    wf.ensure_deletable(_sheet(status=TimesheetStatus.REJECTED))
    with pytest.raises(WorkflowError):
        wf.ensure_deletable(_sheet(status=TimesheetStatus.APPROVED))
