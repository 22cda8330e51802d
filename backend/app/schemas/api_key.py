from pydantic import BaseModel, Field
from typing import Annotated, Optional
from datetime import datetime
from uuid import UUID

Scope = Annotated[str, Field(pattern=r"^(\*|[a-z_]+):(\*|[a-z_-]+)$")]


class ApiKeyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    scopes: list[Scope] = Field(min_length=1)
    expires_at: Optional[datetime] = None


class ApiKeyResponse(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    key_prefix: str
    scopes: list[str]
    is_active: bool
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ApiKeyCreated(BaseModel):
    # the only time the plaintext key is returned
    api_key: str
    key: ApiKeyResponse
