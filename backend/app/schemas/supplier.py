from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime
from uuid import UUID

from app.models.supplier import SupplierType, SupplierStatus, WorkerClassification, EngagementModel
from app.schemas.common import reject_null


# ─── Supplier ────────────────────────────────────────────────────────

class SupplierCreate(BaseModel):
    supplier_type: SupplierType
    company_name: Optional[str] = Field(default=None, max_length=200)
    registration_number: Optional[str] = None
    vat_number: Optional[str] = None
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    trading_name: Optional[str] = None
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = None
    city: Optional[str] = None
    country: str = Field(default="ZA", min_length=2, max_length=2)
    tax_number: Optional[str] = None
    tax_clearance_expiry: Optional[date] = None

    @model_validator(mode="after")
    def check_names_for_type(self):
        if self.supplier_type is SupplierType.COMPANY and not (self.company_name or "").strip():
            raise ValueError("company_name is required for COMPANY suppliers")
        if self.supplier_type is SupplierType.INDIVIDUAL and not (
            (self.first_name or "").strip() and (self.last_name or "").strip()
        ):
            raise ValueError("first_name and last_name are required for INDIVIDUAL suppliers")
        return self


class SupplierUpdate(BaseModel):
    company_name: Optional[str] = Field(default=None, max_length=200)
    registration_number: Optional[str] = None
    vat_number: Optional[str] = None
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    trading_name: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = Field(default=None, min_length=2, max_length=2)
    tax_number: Optional[str] = None
    tax_clearance_expiry: Optional[date] = None

    @field_validator("email", "country")
    @classmethod
    def required_fields_not_null(cls, value):
        return reject_null(value)


class SupplierStatusUpdate(BaseModel):
    status: SupplierStatus


class SupplierResponse(BaseModel):
    id: UUID
    org_id: UUID
    supplier_type: str
    status: str
    display_name: str
    company_name: Optional[str] = None
    registration_number: Optional[str] = None
    vat_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    trading_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    city: Optional[str] = None
    country: str
    tax_number: Optional[str] = None
    tax_clearance_expiry: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ─── Contractor ──────────────────────────────────────────────────────

class ContractorCreate(BaseModel):
    supplier_id: UUID
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = None
    id_number: Optional[str] = None
    worker_classification: WorkerClassification = WorkerClassification.INDEPENDENT_CONTRACTOR
    engagement_model: EngagementModel = EngagementModel.TIME_AND_MATERIALS
    tax_number: Optional[str] = None
    tax_residency: str = Field(default="ZA", min_length=2, max_length=2)
    date_of_birth: Optional[date] = None


class ContractorUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = None
    id_number: Optional[str] = None
    worker_classification: Optional[WorkerClassification] = None
    engagement_model: Optional[EngagementModel] = None
    tax_number: Optional[str] = None
    tax_residency: Optional[str] = Field(default=None, min_length=2, max_length=2)
    date_of_birth: Optional[date] = None
    is_active: Optional[bool] = None

    @field_validator(
        "first_name", "last_name", "email", "worker_classification", "engagement_model", "tax_residency", "is_active"
    )
    @classmethod
    def required_fields_not_null(cls, value):
        return reject_null(value)


class ContractorResponse(BaseModel):
    id: UUID
    supplier_id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: Optional[str] = None
    id_number: Optional[str] = None
    worker_classification: str
    engagement_model: str
    tax_number: Optional[str] = None
    tax_residency: str
    date_of_birth: Optional[date] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
