"""CSV rendering for the export endpoints."""

import csv
import enum
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, Sequence

SUPPLIER_HEADERS = [
    "id", "supplier_type", "name", "trading_name", "email", "phone",
    "registration_number", "vat_number", "country", "status", "created_at",
]

CONTRACTOR_HEADERS = [
    "id", "supplier", "first_name", "last_name", "email", "phone",
    "worker_classification", "engagement_model", "tax_residency", "is_active",
]

CONTRACT_HEADERS = [
    "id", "contract_number", "supplier", "contract_type", "title", "start_date",
    "end_date", "currency", "total_value", "payment_terms_days", "status",
]

PROJECT_HEADERS = [
    "id", "code", "name", "client_name", "start_date", "end_date",
    "budget", "currency", "status",
]

TIMESHEET_HEADERS = [
    "id", "contractor", "period_start", "period_end", "total_hours",
    "status", "submitted_at", "approved_at", "rejection_reason",
]

INVOICE_HEADERS = [
    "id", "invoice_number", "supplier", "invoice_date", "due_date", "currency",
    "amount", "tax_amount", "total_amount", "status", "paid_at", "payment_reference",
]


def format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def to_csv(rows: Iterable[Sequence], headers: Sequence[str]) -> str:
    """
    Render rows under a header line.

    Lines are joined with a bare newline and there is no trailing newline.
    Cells containing a comma, quote or newline are quoted with inner quotes
    doubled. No rows means an empty document, not a lone header.
    """
    rows = list(rows)
    if not rows:
        return ""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([format_cell(v) for v in row])
    return buf.getvalue().rstrip("\n")


def render(records: Iterable, headers: Sequence[str], row: Callable) -> str:
    return to_csv((row(r) for r in records), headers)


# ---------- row builders ----------

def supplier_row(s) -> list:
    return [
        s.id, s.supplier_type, s.display_name, s.trading_name, s.email, s.phone,
        s.registration_number, s.vat_number, s.country, s.status, s.created_at,
    ]


def contractor_row(c, supplier_name: str = "") -> list:
    return [
        c.id, supplier_name, c.first_name, c.last_name, c.email, c.phone,
        c.worker_classification, c.engagement_model, c.tax_residency, c.is_active,
    ]


def contract_row(c, supplier_name: str = "") -> list:
    return [
        c.id, c.contract_number, supplier_name, c.contract_type, c.title, c.start_date,
        c.end_date, c.currency, c.total_value, c.payment_terms_days, c.status,
    ]


def project_row(p) -> list:
    return [p.id, p.code, p.name, p.client_name, p.start_date, p.end_date, p.budget, p.currency, p.status]


def timesheet_row(t, contractor_name: str = "") -> list:
    return [
        t.id, contractor_name, t.period_start, t.period_end, t.total_hours,
        t.status, t.submitted_at, t.approved_at, t.rejection_reason,
    ]


def invoice_row(i, supplier_name: str = "") -> list:
    return [
        i.id, i.invoice_number, supplier_name, i.invoice_date, i.due_date, i.currency,
        i.amount, i.tax_amount, i.total_amount, i.status, i.paid_at, i.payment_reference,
    ]
