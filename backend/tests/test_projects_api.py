def _budget(api, project_id):
    res = api.client.get(f"/api/v1/projects/{project_id}/budget-utilization", headers=api.headers)
    assert res.status_code == 200, res.text
    return res.json()


def test_project_code_unique_per_org(api, client, admin_headers):
    api.project(code="prj-1")
    res = client.post("/api/v1/projects/", headers=admin_headers, json={"code": "PRJ-1", "name": "Again"})
    assert res.status_code == 409


def test_empty_project_has_zero_utilization(api):
    p = api.project(budget="5000")
    summary = _budget(api, p["id"])
    assert summary["total_spent"] == 0
    assert summary["utilization"] == 0
    assert summary["remaining"] == 5000
    assert summary["band"] == "nominal"


def test_no_budget_means_zero_utilization(api):
    setup = api.staffed_project(budget="0")
    api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"])
    summary = _budget(api, setup["project"]["id"])
    assert summary["total_spent"] == 7250.0
    assert summary["utilization"] == 0


def test_approved_uninvoiced_timesheets_count_as_spend(api):
    setup = api.staffed_project(budget="10000", rate_amount="500")
    api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"])
    # a draft never counts
    api.timesheet(setup["contractor"]["id"], setup["engagement"]["id"],
                  period_start="2026-03-09", period_end="2026-03-15",
                  entries=[{"date": "2026-03-09", "hours": "8"}])

    summary = _budget(api, setup["project"]["id"])
    assert summary["total_spent"] == 7250.0
    assert summary["utilization"] == 72.5
    assert summary["band"] == "nominal"
    assert summary["approved_hours"] == 14.5
    assert summary["approved_timesheets"] == 1


def test_invoice_spend_counts_once_approved(api):
    setup = api.staffed_project(budget="8000", rate_amount="500")
    ts = api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"])
    inv = api.post("/api/v1/invoices/generate", {"timesheet_ids": [ts["id"]], "invoice_number": "B-1"})

    # while the invoice is a draft the timesheet still counts at its rate cost
    summary = _budget(api, setup["project"]["id"])
    assert summary["total_spent"] == 7250.0
    assert summary["total_invoiced"] == 8337.5

    api.patch(f"/api/v1/invoices/{inv['id']}/submit")
    api.patch(f"/api/v1/invoices/{inv['id']}/approve")
    summary = _budget(api, setup["project"]["id"])
    assert summary["total_spent"] == 8337.5
    assert summary["utilization"] == 104.22
    assert summary["band"] == "exceeded"
    assert summary["remaining"] == -337.5

    api.patch(f"/api/v1/invoices/{inv['id']}/mark-paid", {"paid_amount": "8337.50", "payment_reference": "EFT-1"})
    assert _budget(api, setup["project"]["id"])["total_paid"] == 8337.5


def test_daily_rate_warning_band(api):
    setup = api.staffed_project(budget="1000", rate_type="DAILY", rate_amount="400")
    api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"],
                           entries=[{"date": "2026-03-02", "hours": "8"}, {"date": "2026-03-03", "hours": "8"}])
    summary = _budget(api, setup["project"]["id"])
    assert summary["total_spent"] == 800.0
    assert summary["utilization"] == 80.0
    assert summary["band"] == "warning"


def test_project_delete_blocked_by_engagements(api, client, admin_headers):
    setup = api.staffed_project()
    res = client.delete(f"/api/v1/projects/{setup['project']['id']}", headers=admin_headers)
    assert res.status_code == 400

    lone = api.project(code="LONE")
    assert client.delete(f"/api/v1/projects/{lone['id']}", headers=admin_headers).status_code == 204


def test_dashboard_flags_projects_over_threshold(api, client, admin_headers):
    setup = api.staffed_project(budget="7000", rate_amount="500")
    api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"])
    res = client.get("/api/v1/analytics/dashboard", headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["projects"]["active"] == 1
    assert body["projects"]["over_threshold"][0]["band"] == "exceeded"
    assert body["timesheets"]["by_status"] == {"APPROVED": 1}
    assert body["contractors"]["active"] == 1


def test_spend_follows_invoice_lifecycle(api):
    setup = api.staffed_project(budget="10000", rate_amount="500")
    pid = setup["project"]["id"]
    ts = api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"])
    assert _budget(api, pid)["total_spent"] == 7250.0

    inv = api.post("/api/v1/invoices/generate", {"timesheet_ids": [ts["id"]], "invoice_number": "L-1"})
    assert _budget(api, pid)["total_spent"] == 7250.0

    api.patch(f"/api/v1/invoices/{inv['id']}/submit")
    assert _budget(api, pid)["total_spent"] == 7250.0

    api.patch(f"/api/v1/invoices/{inv['id']}/reject", {"rejection_reason": "Wrong PO"})
    summary = _budget(api, pid)
    assert summary["total_spent"] == 7250.0
    assert summary["total_invoiced"] == 0

    # a fresh invoice for the same work, approved this time, replaces the rate cost with the billed amount
    api.patch(f"/api/v1/invoices/{inv['id']}/cancel")
    again = api.post("/api/v1/invoices/generate", {"timesheet_ids": [ts["id"]], "invoice_number": "L-2"})
    api.patch(f"/api/v1/invoices/{again['id']}/submit")
    api.patch(f"/api/v1/invoices/{again['id']}/approve")
    summary = _budget(api, pid)
    assert summary["total_spent"] == 8337.5
    assert summary["invoice_count"] == 2


def test_invoice_spanning_projects_is_split_by_line_item(api):
    setup = api.staffed_project(budget="10000", rate_amount="500")
    cid = setup["contractor"]["id"]
    second = api.project(code="PRJ-2", budget="5000")
    other = api.engagement(cid, setup["contract"]["id"], second["id"])

    ts1 = api.approved_timesheet(cid, setup["engagement"]["id"])
    ts2 = api.approved_timesheet(cid, other["id"], period_start="2026-03-09", period_end="2026-03-15",
                                 entries=[{"date": "2026-03-09", "hours": "2"}])
    inv = api.post("/api/v1/invoices/generate", {"timesheet_ids": [ts1["id"], ts2["id"]], "invoice_number": "M-1"})
    assert float(inv["total_amount"]) == 9487.5

    api.patch(f"/api/v1/invoices/{inv['id']}/submit")
    api.patch(f"/api/v1/invoices/{inv['id']}/approve")
    first_summary = _budget(api, setup["project"]["id"])
    second_summary = _budget(api, second["id"])
    assert first_summary["total_spent"] == 8337.5
    assert second_summary["total_spent"] == 1150.0
    assert first_summary["total_spent"] + second_summary["total_spent"] == 9487.5
    assert second_summary["total_invoiced"] == 1150.0

    api.patch(f"/api/v1/invoices/{inv['id']}/mark-paid", {"paid_amount": "9487.50", "payment_reference": "EFT-9"})
    assert _budget(api, setup["project"]["id"])["total_paid"] == 8337.5
    assert _budget(api, second["id"])["total_paid"] == 1150.0
