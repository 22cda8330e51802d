from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.models.project import ProjectStatus
from app.schemas.common import reject_null
from app.schemas.common import reject_null


class ProjectCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    currency: str = Field(default="ZAR", min_length=3, max_length=3)

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[ProjectStatus] = None

    @field_validator("name", "status")
    @classmethod
    def required_fields_not_null(cls, value):
        return reject_null(value)


class ProjectResponse(BaseModel):
    id: UUID
    org_id: UUID
    code: str
    name: str
    description: Optional[str] = None
    client_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = None
    currency: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BudgetUtilizationResponse(BaseModel):
    project_id: UUID
    code: str
    name: str
    currency: str
    budget: Optional[float] = None
    total_spent: float
    remaining: float
    utilization: float
    band: str
    total_invoiced: float
    total_paid: float
    approved_hours: float
    approved_timesheets: int
    invoice_count: int
