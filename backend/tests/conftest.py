"""
Global pytest configuration and fixtures.

Tests run against a shared in-memory SQLite database in demo auth mode; the
caller's identity comes from the X-User-Id / X-Org-Id / X-User-Role headers.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_MODE"] = "demo"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import uuid

import pytest
from fastapi.testclient import TestClient

from app.database import Base, engine, SessionLocal
from app.models import api_key, audit_log, contract, engagement, invoice, project, supplier, timesheet  # noqa: F401
from app.models.user import Organization
from main import app


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def org_id(db) -> uuid.UUID:
    org = Organization(name="Acme Holdings", org_code="acme")
    db.add(org)
    db.commit()
    return org.org_id


def principal_headers(org_id, role="CMS_ADMIN", user_id=None) -> dict:
    return {
        "X-User-Id": str(user_id or uuid.uuid4()),
        "X-Org-Id": str(org_id),
        "X-User-Role": role,
    }


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


class Api:
    """Thin helper that builds the reference records most tests need."""

    def __init__(self, client: TestClient, headers: dict):
        self.client = client
        self.headers = headers

    def post(self, path, json=None, expected=201):
        res = self.client.post(path, json=json, headers=self.headers)
        assert res.status_code == expected, res.text
        return res.json()

    def patch(self, path, json=None, expected=200):
        res = self.client.patch(path, json=json, headers=self.headers)
        assert res.status_code == expected, res.text
        return res.json()

    def supplier(self, email="billing@devco.example", **overrides):
        body = {"supplier_type": "COMPANY", "company_name": "DevCo (Pty) Ltd", "email": email}
        body.update(overrides)
        return self.post("/api/v1/suppliers/", body)

    def contractor(self, supplier_id, email="thandi@devco.example", **overrides):
        body = {"supplier_id": supplier_id, "first_name": "Thandi", "last_name": "Mokoena", "email": email}
        body.update(overrides)
        return self.post("/api/v1/contractors/", body)

    def active_contract(self, supplier_id, number="MSA-001", payment_terms_days=30):
        c = self.post("/api/v1/contracts/", {
            "supplier_id": supplier_id,
            "contract_number": number,
            "contract_type": "MASTER_SERVICES",
            "title": "Master services agreement",
            "start_date": "2026-01-01",
            "payment_terms_days": payment_terms_days,
        })
        return self.patch(f"/api/v1/contracts/{c['id']}/sign")

    def project(self, code="PRJ-1", budget="10000.00"):
        return self.post("/api/v1/projects/", {"code": code, "name": "Platform rebuild", "budget": budget})

    def engagement(self, contractor_id, contract_id, project_id=None, rate_type="HOURLY", rate_amount="500.00"):
        return self.post("/api/v1/engagements/", {
            "contractor_id": contractor_id,
            "contract_id": contract_id,
            "project_id": project_id,
            "role": "Backend developer",
            "start_date": "2026-01-01",
            "rate_type": rate_type,
            "rate_amount": rate_amount,
        })

    def timesheet(self, contractor_id, engagement_id=None, entries=None,
                  period_start="2026-03-02", period_end="2026-03-08"):
        if entries is None:
            entries = [
                {"date": "2026-03-02", "hours": "8", "description": "API work"},
                {"date": "2026-03-03", "hours": "6.5", "description": "Reviews"},
            ]
        return self.post("/api/v1/timesheets/", {
            "contractor_id": contractor_id,
            "engagement_id": engagement_id,
            "period_start": period_start,
            "period_end": period_end,
            "entries": entries,
        })

    def approved_timesheet(self, contractor_id, engagement_id=None, **kwargs):
        ts = self.timesheet(contractor_id, engagement_id, **kwargs)
        self.patch(f"/api/v1/timesheets/{ts['id']}/submit")
        return self.patch(f"/api/v1/timesheets/{ts['id']}/approve")

    def staffed_project(self, budget="10000.00", rate_type="HOURLY", rate_amount="500.00"):
        """Supplier, contractor, signed contract, project and an engagement tying them together."""
        s = self.supplier()
        c = self.contractor(s["id"])
        k = self.active_contract(s["id"])
        p = self.project(budget=budget)
        e = self.engagement(c["id"], k["id"], p["id"], rate_type=rate_type, rate_amount=rate_amount)
        return {"supplier": s, "contractor": c, "contract": k, "project": p, "engagement": e}


@pytest.fixture
def admin_headers(org_id) -> dict:
    return principal_headers(org_id)


@pytest.fixture
def api(client, admin_headers) -> Api:
    return Api(client, admin_headers)
