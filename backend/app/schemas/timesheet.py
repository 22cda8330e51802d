from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
import datetime as dt
from uuid import UUID
from decimal import Decimal

from app.schemas.common import reject_null


class TimesheetEntryIn(BaseModel):
    date: Optional[dt.date] = None
    hours: Decimal = Field(ge=0, le=24)
    description: str = ""


class TimesheetCreate(BaseModel):
    contractor_id: UUID
    engagement_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    period_start: dt.date
    period_end: dt.date
    entries: list[TimesheetEntryIn] = []

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end <= self.period_start:
            raise ValueError("period_end must be after period_start")
        return self


class TimesheetUpdate(BaseModel):
    engagement_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    period_start: Optional[dt.date] = None
    period_end: Optional[dt.date] = None
    # when given, replaces every existing entry
    entries: Optional[list[TimesheetEntryIn]] = None

    @field_validator("period_start", "period_end")
    @classmethod
    def required_fields_not_null(cls, value):
        return reject_null(value)


class TimesheetReject(BaseModel):
    rejection_reason: str = Field(min_length=1)


class TimesheetEntryResponse(BaseModel):
    id: UUID
    position: int
    date: Optional[dt.date] = None
    hours: float
    description: Optional[str] = ""

    model_config = {"from_attributes": True}


class TimesheetResponse(BaseModel):
    id: UUID
    contractor_id: UUID
    engagement_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    invoice_id: Optional[UUID] = None
    period_start: dt.date
    period_end: dt.date
    total_hours: float
    status: str
    submitted_at: Optional[dt.datetime] = None
    approved_by: Optional[UUID] = None
    approved_at: Optional[dt.datetime] = None
    rejection_reason: Optional[str] = None
    entries: list[TimesheetEntryResponse] = []
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}
