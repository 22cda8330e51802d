"""Suppliers, contractors, contracts and engagements."""
from conftest import principal_headers


# ── suppliers ──

def test_company_supplier_needs_company_name(client, admin_headers):
    res = client.post("/api/v1/suppliers/", headers=admin_headers,
                      json={"supplier_type": "COMPANY", "email": "a@b.example"})
    assert res.status_code == 422


def test_individual_supplier_needs_names(api, client, admin_headers):
    res = client.post("/api/v1/suppliers/", headers=admin_headers,
                      json={"supplier_type": "INDIVIDUAL", "first_name": "Sipho", "email": "s@b.example"})
    assert res.status_code == 422

    s = api.supplier(supplier_type="INDIVIDUAL", company_name=None, first_name="Sipho",
                     last_name="Dlamini", email="sipho@b.example")
    assert s["display_name"] == "Sipho Dlamini"
    assert s["status"] == "PENDING_APPROVAL"


def test_duplicate_supplier_email_is_409(api, client, admin_headers):
    api.supplier(email="dup@x.example")
    res = client.post("/api/v1/suppliers/", headers=admin_headers, json={
        "supplier_type": "COMPANY", "company_name": "Other", "email": "DUP@x.example",
    })
    assert res.status_code == 409


def test_same_email_allowed_in_another_org(api, client, db):
    from app.models.user import Organization

    other = Organization(name="Beta", org_code="beta")
    db.add(other)
    db.commit()

    api.supplier(email="shared@x.example")
    res = client.post("/api/v1/suppliers/", headers=principal_headers(other.org_id), json={
        "supplier_type": "COMPANY", "company_name": "Shared", "email": "shared@x.example",
    })
    assert res.status_code == 201


def test_supplier_status_and_search(api, client, admin_headers):
    s = api.supplier()
    api.supplier(email="other@x.example", company_name="Northwind")
    updated = api.patch(f"/api/v1/suppliers/{s['id']}/status", {"status": "ACTIVE"})
    assert updated["status"] == "ACTIVE"

    res = client.get("/api/v1/suppliers/?status=ACTIVE", headers=admin_headers).json()
    assert [row["id"] for row in res["data"]] == [s["id"]]
    res = client.get("/api/v1/suppliers/?search=north", headers=admin_headers).json()
    assert res["total"] == 1


def test_supplier_delete_blocked_by_contractors(api, client, admin_headers):
    s = api.supplier()
    c = api.contractor(s["id"])
    res = client.delete(f"/api/v1/suppliers/{s['id']}", headers=admin_headers)
    assert res.status_code == 400

    client.delete(f"/api/v1/contractors/{c['id']}", headers=admin_headers)
    assert client.delete(f"/api/v1/suppliers/{s['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/v1/suppliers/{s['id']}", headers=admin_headers).status_code == 404


def test_supplier_delete_blocked_by_active_contract(api, client, admin_headers):
    s = api.supplier()
    api.active_contract(s["id"])
    res = client.delete(f"/api/v1/suppliers/{s['id']}", headers=admin_headers)
    assert res.status_code == 400


def test_supplier_export_csv(api, client, admin_headers):
    api.supplier(company_name="Acme, Inc")
    res = client.get("/api/v1/suppliers/export.csv", headers=admin_headers)
    header, row = res.text.split("\n")
    assert header.split(",")[:3] == ["id", "supplier_type", "name"]
    assert ',COMPANY,"Acme, Inc",' in row


# ── contractors ──

def test_contractor_email_unique_per_supplier(api, client, admin_headers):
    s1 = api.supplier()
    s2 = api.supplier(email="second@x.example")
    api.contractor(s1["id"], email="dev@x.example")
    api.contractor(s2["id"], email="dev@x.example")
    res = client.post("/api/v1/contractors/", headers=admin_headers, json={
        "supplier_id": s1["id"], "first_name": "A", "last_name": "B", "email": "dev@x.example",
    })
    assert res.status_code == 409


def test_contractor_with_history_is_deactivated_not_deleted(api, client, admin_headers):
    setup = api.staffed_project()
    cid = setup["contractor"]["id"]
    assert client.delete(f"/api/v1/contractors/{cid}", headers=admin_headers).status_code == 204
    fetched = client.get(f"/api/v1/contractors/{cid}", headers=admin_headers).json()
    assert fetched["is_active"] is False


# ── contracts ──

def test_contract_sign_and_terminate(api, client, admin_headers):
    s = api.supplier()
    signed = api.active_contract(s["id"])
    assert signed["status"] == "ACTIVE"
    assert signed["signed_by"] == admin_headers["X-User-Id"]

    res = client.patch(f"/api/v1/contracts/{signed['id']}/sign", headers=admin_headers)
    assert res.status_code == 400

    terminated = api.patch(f"/api/v1/contracts/{signed['id']}/terminate")
    assert terminated["status"] == "TERMINATED"
    res = client.patch(f"/api/v1/contracts/{signed['id']}/terminate", headers=admin_headers)
    assert res.status_code == 400


def test_contract_number_unique_and_dates(api, client, admin_headers):
    s = api.supplier()
    api.active_contract(s["id"], number="SOW-7")
    body = {
        "supplier_id": s["id"], "contract_number": "SOW-7", "contract_type": "STATEMENT_OF_WORK",
        "title": "Phase 2", "start_date": "2026-02-01",
    }
    assert client.post("/api/v1/contracts/", headers=admin_headers, json=body).status_code == 409

    body.update(contract_number="SOW-8", end_date="2026-01-01")
    assert client.post("/api/v1/contracts/", headers=admin_headers, json=body).status_code == 422


# ── engagements ──

def test_engagement_requires_active_contract(api, client, admin_headers):
    s = api.supplier()
    c = api.contractor(s["id"])
    draft = api.post("/api/v1/contracts/", {
        "supplier_id": s["id"], "contract_number": "D-1", "contract_type": "FIXED_TERM",
        "title": "Draft", "start_date": "2026-01-01",
    })
    res = client.post("/api/v1/engagements/", headers=admin_headers, json={
        "contractor_id": c["id"], "contract_id": draft["id"], "role": "Dev",
        "start_date": "2026-01-01", "rate_amount": "100",
    })
    assert res.status_code == 400


def test_engagement_deactivate(api, client, admin_headers):
    setup = api.staffed_project()
    eid = setup["engagement"]["id"]
    assert api.patch(f"/api/v1/engagements/{eid}/deactivate")["is_active"] is False
    assert client.patch(f"/api/v1/engagements/{eid}/deactivate", headers=admin_headers).status_code == 400


def test_manager_can_create_suppliers_finance_cannot(client, org_id):
    body = {"supplier_type": "COMPANY", "company_name": "Perm Co", "email": "perm@x.example"}
    res = client.post("/api/v1/suppliers/", headers=principal_headers(org_id, role="FINANCE_USER"), json=body)
    assert res.status_code == 403
    res = client.post("/api/v1/suppliers/", headers=principal_headers(org_id, role="CONTRACTOR_MANAGER"), json=body)
    assert res.status_code == 201


def test_supplier_update_rejects_null_email(api, client, admin_headers):
    s = api.supplier()
    res = client.patch(f"/api/v1/suppliers/{s['id']}", headers=admin_headers, json={"email": None})
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "email"]


def test_supplier_update_name_rules_reported_per_field(api, client, admin_headers):
    s = api.supplier()
    res = client.patch(f"/api/v1/suppliers/{s['id']}", headers=admin_headers, json={"company_name": ""})
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "company_name"]

    person = api.supplier(supplier_type="INDIVIDUAL", company_name=None, first_name="Sipho",
                          last_name="Dlamini", email="sipho@b.example")
    res = client.patch(f"/api/v1/suppliers/{person['id']}", headers=admin_headers, json={"last_name": None})
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "last_name"]


def test_null_required_fields_are_422_across_resources(api, client, admin_headers):
    setup = api.staffed_project()
    cases = [
        (f"/api/v1/contractors/{setup['contractor']['id']}", {"first_name": None}, "first_name"),
        (f"/api/v1/contracts/{setup['contract']['id']}", {"title": None}, "title"),
        (f"/api/v1/projects/{setup['project']['id']}", {"name": None}, "name"),
        (f"/api/v1/engagements/{setup['engagement']['id']}", {"rate_amount": None}, "rate_amount"),
    ]
    for path, body, field in cases:
        res = client.patch(path, headers=admin_headers, json=body)
        assert res.status_code == 422, path
        assert res.json()["detail"][0]["loc"] == ["body", field]


def test_contract_end_date_reported_per_field(api, client, admin_headers):
    s = api.supplier()
    k = api.active_contract(s["id"])
    res = client.patch(f"/api/v1/contracts/{k['id']}", headers=admin_headers, json={"end_date": "2025-12-31"})
    assert res.status_code == 422
    assert res.json()["detail"] == [
        {"loc": ["body", "end_date"], "msg": "end_date must be after start_date", "type": "value_error"},
    ]
