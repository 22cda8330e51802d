from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from app.schemas.common import reject_null


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    org_code: str = Field(min_length=2, max_length=50)
    country: str = Field(default="ZA", min_length=2, max_length=2)
    currency: str = Field(default="ZAR", min_length=3, max_length=3)
    timezone: str = "Africa/Johannesburg"


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    country: Optional[str] = Field(default=None, min_length=2, max_length=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    timezone: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "country", "currency", "timezone", "is_active")
    @classmethod
    def required_fields_not_null(cls, value):
        return reject_null(value)


class OrganizationResponse(BaseModel):
    org_id: UUID
    name: str
    org_code: str
    country: str
    currency: str
    timezone: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
