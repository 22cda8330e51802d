from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.schemas.common import reject_null


class InvoiceLineItemIn(BaseModel):
    description: str = Field(min_length=1)
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    project_id: Optional[UUID] = None


class InvoiceCreate(BaseModel):
    supplier_id: UUID
    engagement_id: Optional[UUID] = None
    invoice_number: str = Field(min_length=1, max_length=50)
    invoice_date: date
    due_date: date
    period_start: date
    period_end: date
    currency: str = Field(default="ZAR", min_length=3, max_length=3)
    line_items: list[InvoiceLineItemIn] = []
    timesheet_ids: list[UUID] = []

    @model_validator(mode="after")
    def check_dates(self):
        if self.due_date <= self.invoice_date:
            raise ValueError("due_date must be after invoice_date")
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class InvoiceUpdate(BaseModel):
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    # when given, replaces every existing line item and recomputes totals
    line_items: Optional[list[InvoiceLineItemIn]] = None

    @field_validator("invoice_date", "due_date", "period_start", "period_end")
    @classmethod
    def required_fields_not_null(cls, value):
        return reject_null(value)


class InvoiceGenerate(BaseModel):
    timesheet_ids: list[UUID] = Field(min_length=1)
    invoice_number: str = Field(min_length=1, max_length=50)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None


class InvoiceReject(BaseModel):
    rejection_reason: Optional[str] = None


class InvoiceMarkPaid(BaseModel):
    paid_amount: Optional[Decimal] = None
    payment_reference: Optional[str] = None
    paid_at: Optional[datetime] = None


class InvoiceLineItemResponse(BaseModel):
    id: UUID
    position: int
    description: str
    quantity: float
    unit_price: float
    amount: float
    project_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    id: UUID
    org_id: UUID
    supplier_id: UUID
    engagement_id: Optional[UUID] = None
    invoice_number: str
    invoice_date: date
    due_date: date
    period_start: date
    period_end: date
    currency: str
    amount: float
    tax_amount: float
    total_amount: float
    status: str
    submitted_at: Optional[datetime] = None
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    paid_amount: Optional[float] = None
    payment_reference: Optional[str] = None
    line_items: list[InvoiceLineItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
