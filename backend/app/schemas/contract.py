from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.models.contract import ContractType
from app.schemas.common import reject_null
from app.schemas.common import reject_null


class ContractCreate(BaseModel):
    supplier_id: UUID
    contract_number: str = Field(min_length=1, max_length=50)
    contract_type: ContractType
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    currency: str = Field(default="ZAR", min_length=3, max_length=3)
    total_value: Optional[Decimal] = Field(default=None, ge=0)
    payment_terms_days: int = Field(default=30, ge=0, le=365)
    notice_period_days: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ContractUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    end_date: Optional[date] = None
    total_value: Optional[Decimal] = Field(default=None, ge=0)
    payment_terms_days: Optional[int] = Field(default=None, ge=0, le=365)
    notice_period_days: Optional[int] = Field(default=None, ge=0)

    @field_validator("title", "payment_terms_days")
    @classmethod
    def required_fields_not_null(cls, value):
        return reject_null(value)


class ContractResponse(BaseModel):
    id: UUID
    org_id: UUID
    supplier_id: UUID
    contract_number: str
    contract_type: str
    title: str
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    currency: str
    total_value: Optional[float] = None
    payment_terms_days: int
    notice_period_days: Optional[int] = None
    status: str
    signed_at: Optional[datetime] = None
    signed_by: Optional[UUID] = None
    terminated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
