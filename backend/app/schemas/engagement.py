from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.models.engagement import RateType
from app.schemas.common import reject_null
from app.schemas.common import reject_null


class EngagementCreate(BaseModel):
    contractor_id: UUID
    contract_id: UUID
    project_id: Optional[UUID] = None
    role: str = Field(min_length=1, max_length=200)
    start_date: date
    end_date: Optional[date] = None
    rate_type: RateType = RateType.HOURLY
    rate_amount: Decimal = Field(gt=0)
    currency: str = Field(default="ZAR", min_length=3, max_length=3)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class EngagementUpdate(BaseModel):
    project_id: Optional[UUID] = None
    role: Optional[str] = Field(default=None, min_length=1, max_length=200)
    end_date: Optional[date] = None
    rate_type: Optional[RateType] = None
    rate_amount: Optional[Decimal] = Field(default=None, gt=0)

    @field_validator("role", "rate_type", "rate_amount")
    @classmethod
    def required_fields_not_null(cls, value):
        return reject_null(value)


class EngagementResponse(BaseModel):
    id: UUID
    contractor_id: UUID
    contract_id: UUID
    project_id: Optional[UUID] = None
    role: str
    start_date: date
    end_date: Optional[date] = None
    rate_type: str
    rate_amount: float
    currency: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
