from datetime import date, timedelta

from conftest import principal_headers


def _get(api, path, **params):
    res = api.client.get(path, headers=api.headers, params=params)
    assert res.status_code == 200, res.text
    return res.json()


def _billed_project(api):
    setup = api.staffed_project(budget="10000", rate_amount="500")
    cid, eid = setup["contractor"]["id"], setup["engagement"]["id"]
    ts = api.approved_timesheet(cid, eid)
    api.timesheet(cid, eid, period_start="2026-03-09", period_end="2026-03-15",
                  entries=[{"date": "2026-03-09", "hours": "8"}])
    inv = api.post("/api/v1/invoices/generate", {"timesheet_ids": [ts["id"]], "invoice_number": "A-1"})
    api.patch(f"/api/v1/invoices/{inv['id']}/submit")
    api.patch(f"/api/v1/invoices/{inv['id']}/approve")
    return setup, inv


def test_financial_summary_tracks_payment(api):
    _, inv = _billed_project(api)
    summary = _get(api, "/api/v1/analytics/financial")
    assert summary == {
        "total_invoiced": 8337.5,
        "total_paid": 0.0,
        "total_pending": 8337.5,
        "invoice_count": 1,
        "average_invoice_amount": 8337.5,
    }

    api.patch(f"/api/v1/invoices/{inv['id']}/mark-paid", {"paid_amount": "8337.50", "payment_reference": "EFT-3"})
    summary = _get(api, "/api/v1/analytics/financial")
    assert summary["total_paid"] == 8337.5
    assert summary["total_pending"] == 0.0


def test_cancelled_invoices_are_not_invoiced(api):
    _, inv = _billed_project(api)
    api.patch(f"/api/v1/invoices/{inv['id']}/cancel")
    summary = _get(api, "/api/v1/analytics/financial")
    assert summary["invoice_count"] == 0
    assert summary["average_invoice_amount"] == 0.0


def test_date_range_filters_on_creation_day(api):
    _billed_project(api)
    old = {"start_date": "2000-01-01", "end_date": "2000-12-31"}
    assert _get(api, "/api/v1/analytics/financial", **old)["invoice_count"] == 0
    assert _get(api, "/api/v1/analytics/timesheets", **old)["total_timesheets"] == 0

    since = (date.today() - timedelta(days=1)).isoformat()
    assert _get(api, "/api/v1/analytics/financial", start_date=since)["invoice_count"] == 1
    assert _get(api, "/api/v1/analytics/timesheets", start_date=since)["total_timesheets"] == 2


def test_contractor_summary(api, client, admin_headers):
    setup, _ = _billed_project(api)
    idle = api.contractor(setup["supplier"]["id"], email="idle@devco.example")
    client.delete(f"/api/v1/contractors/{idle['id']}", headers=admin_headers)
    spare = api.contractor(setup["supplier"]["id"], email="spare@devco.example")
    api.patch(f"/api/v1/contractors/{spare['id']}", {"is_active": False})

    assert _get(api, "/api/v1/analytics/contractors") == {
        "total_contractors": 2,
        "active_contractors": 1,
        "inactive_contractors": 1,
        "active_engagements": 1,
        "supplier_count": 1,
    }


def test_project_summary_uses_budget_spend(api):
    _billed_project(api)
    api.project(code="IDLE", budget="5000")
    assert _get(api, "/api/v1/analytics/projects") == {
        "total_projects": 2,
        "active_projects": 2,
        "completed_projects": 0,
        "total_budget": 15000.0,
        "total_utilized": 8337.5,
        "average_utilization": 55.58,
    }


def test_timesheet_summary(api):
    _billed_project(api)
    assert _get(api, "/api/v1/analytics/timesheets") == {
        "total_timesheets": 2,
        "pending_approval": 0,
        "approved": 1,
        "rejected": 0,
        "total_hours": 22.5,
    }


def test_summaries_need_analytics_permission(client, org_id):
    headers = principal_headers(org_id, role="CONTRACTOR")
    for path in ("financial", "contractors", "projects", "timesheets"):
        assert client.get(f"/api/v1/analytics/{path}", headers=headers).status_code == 403
