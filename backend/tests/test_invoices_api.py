from conftest import principal_headers


def _draft_invoice(api, supplier_id, number="INV-001", items=None):
    if items is None:
        items = [
            {"description": "Backend development", "quantity": "10", "unit_price": "450.00"},
            {"description": "Hosting", "quantity": "1", "unit_price": "333.33"},
        ]
    return api.post("/api/v1/invoices/", {
        "supplier_id": supplier_id,
        "invoice_number": number,
        "invoice_date": "2026-03-31",
        "due_date": "2026-04-30",
        "period_start": "2026-03-01",
        "period_end": "2026-03-31",
        "line_items": items,
    })


def test_create_computes_amounts_and_vat(api):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    assert inv["status"] == "DRAFT"
    assert inv["amount"] == 4833.33
    assert inv["tax_amount"] == 725.0
    assert inv["total_amount"] == round(inv["amount"] + inv["tax_amount"], 2)
    assert [li["amount"] for li in inv["line_items"]] == [4500.0, 333.33]


def test_invoice_number_unique_per_org(api, client, admin_headers):
    s = api.supplier()
    _draft_invoice(api, s["id"])
    res = client.post("/api/v1/invoices/", headers=admin_headers, json={
        "supplier_id": s["id"],
        "invoice_number": "INV-001",
        "invoice_date": "2026-04-30",
        "due_date": "2026-05-30",
        "period_start": "2026-04-01",
        "period_end": "2026-04-30",
    })
    assert res.status_code == 409


def test_due_date_must_follow_invoice_date(api, client, admin_headers):
    s = api.supplier()
    res = client.post("/api/v1/invoices/", headers=admin_headers, json={
        "supplier_id": s["id"],
        "invoice_number": "INV-009",
        "invoice_date": "2026-03-31",
        "due_date": "2026-03-31",
        "period_start": "2026-03-01",
        "period_end": "2026-03-31",
    })
    assert res.status_code == 422


def test_submit_without_line_items_is_400(api, client, admin_headers):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"], items=[])
    res = client.patch(f"/api/v1/invoices/{inv['id']}/submit", headers=admin_headers)
    assert res.status_code == 400


def test_lifecycle_to_paid(api):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    api.patch(f"/api/v1/invoices/{inv['id']}/submit")
    approved = api.patch(f"/api/v1/invoices/{inv['id']}/approve")
    assert approved["status"] == "APPROVED"

    paid = api.patch(f"/api/v1/invoices/{inv['id']}/mark-paid", {
        "paid_amount": str(inv["total_amount"]),
        "payment_reference": "EFT-2026-0412",
        "paid_at": "2026-04-12T10:00:00Z",
    })
    assert paid["status"] == "PAID"
    assert paid["payment_reference"] == "EFT-2026-0412"
    assert paid["paid_at"].startswith("2026-04-12")


def test_mark_paid_without_reference_is_rejected(api, client, admin_headers):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    api.patch(f"/api/v1/invoices/{inv['id']}/submit")

    res = client.patch(f"/api/v1/invoices/{inv['id']}/mark-paid", headers=admin_headers,
                       json={"paid_amount": "100.00"})
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "payment_reference"]

    fresh = client.get(f"/api/v1/invoices/{inv['id']}", headers=admin_headers).json()
    assert fresh["status"] == "SUBMITTED"
    assert fresh["paid_at"] is None


def test_mark_paid_from_draft_is_400(api, client, admin_headers):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    res = client.patch(f"/api/v1/invoices/{inv['id']}/mark-paid", headers=admin_headers,
                       json={"paid_amount": "1", "payment_reference": "X"})
    assert res.status_code == 400


def test_paid_invoice_cannot_be_cancelled(api, client, admin_headers):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    api.patch(f"/api/v1/invoices/{inv['id']}/submit")
    api.patch(f"/api/v1/invoices/{inv['id']}/mark-paid", {"paid_amount": "10", "payment_reference": "R1"})
    res = client.patch(f"/api/v1/invoices/{inv['id']}/cancel", headers=admin_headers)
    assert res.status_code == 400


def test_update_recomputes_totals_in_draft_only(api, client, admin_headers):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    updated = api.patch(f"/api/v1/invoices/{inv['id']}", {
        "line_items": [{"description": "Consulting", "quantity": "2", "unit_price": "1000"}],
    })
    assert updated["amount"] == 2000.0
    assert updated["tax_amount"] == 300.0
    assert updated["total_amount"] == 2300.0

    api.patch(f"/api/v1/invoices/{inv['id']}/submit")
    res = client.patch(f"/api/v1/invoices/{inv['id']}", headers=admin_headers, json={"line_items": []})
    assert res.status_code == 400


def test_generate_from_approved_timesheets(api):
    setup = api.staffed_project(rate_type="HOURLY", rate_amount="500.00")
    ts = api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"])

    inv = api.post("/api/v1/invoices/generate", {
        "timesheet_ids": [ts["id"]],
        "invoice_number": "GEN-001",
        "invoice_date": "2026-03-10",
    })
    assert inv["supplier_id"] == setup["supplier"]["id"]
    assert inv["due_date"] == "2026-04-09"
    assert inv["period_start"] == "2026-03-02"
    assert len(inv["line_items"]) == 1
    line = inv["line_items"][0]
    assert line["quantity"] == 14.5
    assert line["unit_price"] == 500.0
    assert line["amount"] == 7250.0
    assert line["project_id"] == setup["project"]["id"]
    assert inv["total_amount"] == 8337.5

    linked = api.client.get(f"/api/v1/timesheets/{ts['id']}", headers=api.headers).json()
    assert linked["invoice_id"] == inv["id"]


def test_generate_rejects_unapproved_or_already_invoiced(api, client, admin_headers):
    setup = api.staffed_project()
    draft = api.timesheet(setup["contractor"]["id"], setup["engagement"]["id"])
    res = client.post("/api/v1/invoices/generate", headers=admin_headers,
                      json={"timesheet_ids": [draft["id"]], "invoice_number": "GEN-002"})
    assert res.status_code == 400

    approved = api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"],
                                      period_start="2026-03-09", period_end="2026-03-15",
                                      entries=[{"date": "2026-03-09", "hours": "8"}])
    api.post("/api/v1/invoices/generate", {"timesheet_ids": [approved["id"]], "invoice_number": "GEN-003"})
    res = client.post("/api/v1/invoices/generate", headers=admin_headers,
                      json={"timesheet_ids": [approved["id"]], "invoice_number": "GEN-004"})
    assert res.status_code == 400


def test_cancel_releases_timesheets(api):
    setup = api.staffed_project()
    ts = api.approved_timesheet(setup["contractor"]["id"], setup["engagement"]["id"])
    inv = api.post("/api/v1/invoices/generate", {"timesheet_ids": [ts["id"]], "invoice_number": "GEN-010"})

    api.patch(f"/api/v1/invoices/{inv['id']}/cancel")
    released = api.client.get(f"/api/v1/timesheets/{ts['id']}", headers=api.headers).json()
    assert released["invoice_id"] is None


def test_contractor_cannot_approve_invoices(api, client, org_id):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    api.patch(f"/api/v1/invoices/{inv['id']}/submit")
    res = client.patch(f"/api/v1/invoices/{inv['id']}/approve",
                       headers=principal_headers(org_id, role="CONTRACTOR"))
    assert res.status_code == 403


def test_export_csv(api, client, admin_headers):
    s = api.supplier(company_name='Quote "Me", Ltd')
    _draft_invoice(api, s["id"])
    res = client.get("/api/v1/invoices/export.csv", headers=admin_headers)
    lines = res.text.split("\n")
    assert lines[0] == "id,invoice_number,supplier,invoice_date,due_date,currency,amount,tax_amount,total_amount,status,paid_at,payment_reference"
    assert '"Quote ""Me"", Ltd"' in lines[1]
    assert "4833.33,725.00,5558.33,DRAFT,," in lines[1]


def test_update_rejects_null_dates(api, client, admin_headers):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    res = client.patch(f"/api/v1/invoices/{inv['id']}", headers=admin_headers, json={"due_date": None})
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "due_date"]

    # omitting line_items or sending null leaves them untouched
    updated = api.patch(f"/api/v1/invoices/{inv['id']}", {"line_items": None, "due_date": "2026-05-15"})
    assert len(updated["line_items"]) == 2
    assert updated["due_date"] == "2026-05-15"


def test_update_date_order_reported_per_field(api, client, admin_headers):
    s = api.supplier()
    inv = _draft_invoice(api, s["id"])
    res = client.patch(f"/api/v1/invoices/{inv['id']}", headers=admin_headers, json={"due_date": "2026-03-01"})
    assert res.status_code == 422
    assert res.json()["detail"] == [
        {"loc": ["body", "due_date"], "msg": "due_date must be after invoice_date", "type": "value_error"},
    ]

    res = client.patch(f"/api/v1/invoices/{inv['id']}", headers=admin_headers, json={"period_end": "2026-02-01"})
    assert res.json()["detail"][0]["loc"] == ["body", "period_end"]
