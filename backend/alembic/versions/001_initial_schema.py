"""Initial contractor management schema

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("org_id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("org_code", sa.String(50), nullable=False),
        sa.Column("country", sa.String(2), nullable=False, server_default="ZA"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ZAR"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="Africa/Johannesburg"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_organizations_org_code", "organizations", ["org_code"], unique=True)

    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.org_id", ondelete="SET NULL"), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_org_id", "users", ["org_id"])

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.org_id", ondelete="CASCADE"), nullable=False),
        sa.Column("supplier_type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="PENDING_APPROVAL"),
        sa.Column("company_name", sa.String(200)),
        sa.Column("registration_number", sa.String(50)),
        sa.Column("vat_number", sa.String(50)),
        sa.Column("first_name", sa.String(100)),
        sa.Column("last_name", sa.String(100)),
        sa.Column("trading_name", sa.String(200)),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("city", sa.String(100)),
        sa.Column("country", sa.String(2), nullable=False, server_default="ZA"),
        sa.Column("tax_number", sa.String(50)),
        sa.Column("tax_clearance_expiry", sa.Date()),
        *_timestamps(),
        sa.UniqueConstraint("org_id", "email", name="uq_suppliers_org_email"),
    )
    op.create_index("ix_suppliers_org_id", "suppliers", ["org_id"])

    op.create_table(
        "contractors",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("supplier_id", sa.Uuid(), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("id_number", sa.String(50)),
        sa.Column("worker_classification", sa.String(40), nullable=False, server_default="INDEPENDENT_CONTRACTOR"),
        sa.Column("engagement_model", sa.String(40), nullable=False, server_default="TIME_AND_MATERIALS"),
        sa.Column("tax_number", sa.String(50)),
        sa.Column("tax_residency", sa.String(2), nullable=False, server_default="ZA"),
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("supplier_id", "email", name="uq_contractors_supplier_email"),
    )
    op.create_index("ix_contractors_supplier_id", "contractors", ["supplier_id"])

    op.create_table(
        "supplier_contracts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.org_id", ondelete="CASCADE"), nullable=False),
        sa.Column("supplier_id", sa.Uuid(), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("contract_number", sa.String(50), nullable=False),
        sa.Column("contract_type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ZAR"),
        sa.Column("total_value", sa.Numeric(14, 2)),
        sa.Column("payment_terms_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("notice_period_days", sa.Integer()),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("signed_at", sa.DateTime(timezone=True)),
        sa.Column("signed_by", sa.Uuid()),
        sa.Column("terminated_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint("org_id", "contract_number", name="uq_contracts_org_number"),
    )
    op.create_index("ix_supplier_contracts_org_id", "supplier_contracts", ["org_id"])
    op.create_index("ix_supplier_contracts_supplier_id", "supplier_contracts", ["supplier_id"])

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.org_id", ondelete="CASCADE"), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("client_name", sa.String(200)),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date()),
        sa.Column("budget", sa.Numeric(14, 2)),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ZAR"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        *_timestamps(),
        sa.UniqueConstraint("org_id", "code", name="uq_projects_org_code"),
    )
    op.create_index("ix_projects_org_id", "projects", ["org_id"])

    op.create_table(
        "engagements",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("contractor_id", sa.Uuid(), sa.ForeignKey("contractors.id"), nullable=False),
        sa.Column("contract_id", sa.Uuid(), sa.ForeignKey("supplier_contracts.id"), nullable=False),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id")),
        sa.Column("role", sa.String(200), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column("rate_type", sa.String(10), nullable=False, server_default="HOURLY"),
        sa.Column("rate_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ZAR"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    for col in ("contractor_id", "contract_id", "project_id"):
        op.create_index(f"ix_engagements_{col}", "engagements", [col])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.org_id", ondelete="CASCADE"), nullable=False),
        sa.Column("supplier_id", sa.Uuid(), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("engagement_id", sa.Uuid(), sa.ForeignKey("engagements.id")),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="ZAR"),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("submitted_at", sa.DateTime(timezone=True)),
        sa.Column("approved_by", sa.Uuid()),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.Column("paid_amount", sa.Numeric(14, 2)),
        sa.Column("payment_reference", sa.String(100)),
        *_timestamps(),
        sa.UniqueConstraint("org_id", "invoice_number", name="uq_invoices_org_number"),
    )
    op.create_index("ix_invoices_org_id", "invoices", ["org_id"])
    op.create_index("ix_invoices_supplier_id", "invoices", ["supplier_id"])

    op.create_table(
        "invoice_line_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("invoice_id", sa.Uuid(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id")),
    )
    op.create_index("ix_invoice_line_items_invoice_id", "invoice_line_items", ["invoice_id"])
    op.create_index("ix_invoice_line_items_project_id", "invoice_line_items", ["project_id"])

    op.create_table(
        "timesheets",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("contractor_id", sa.Uuid(), sa.ForeignKey("contractors.id"), nullable=False),
        sa.Column("engagement_id", sa.Uuid(), sa.ForeignKey("engagements.id")),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id")),
        sa.Column("invoice_id", sa.Uuid(), sa.ForeignKey("invoices.id", ondelete="SET NULL")),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("submitted_at", sa.DateTime(timezone=True)),
        sa.Column("approved_by", sa.Uuid()),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        sa.Column("rejection_reason", sa.Text()),
        *_timestamps(),
    )
    for col in ("contractor_id", "engagement_id", "project_id", "invoice_id"):
        op.create_index(f"ix_timesheets_{col}", "timesheets", [col])

    op.create_table(
        "timesheet_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("timesheet_id", sa.Uuid(), sa.ForeignKey("timesheets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("date", sa.Date()),
        sa.Column("hours", sa.Numeric(5, 2), nullable=False),
        sa.Column("description", sa.Text(), server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_timesheet_entries_timesheet_id", "timesheet_entries", ["timesheet_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid()),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(100), nullable=False),
        sa.Column("resource_id", sa.String(255)),
        sa.Column("details", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_log_org_id", "audit_log", ["org_id"])


def downgrade() -> None:
    for table in (
        "audit_log",
        "timesheet_entries",
        "timesheets",
        "invoice_line_items",
        "invoices",
        "engagements",
        "projects",
        "supplier_contracts",
        "contractors",
        "suppliers",
        "users",
        "organizations",
    ):
        op.drop_table(table)
