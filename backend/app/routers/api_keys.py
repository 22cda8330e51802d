"""API keys for integrations: issue, list and revoke."""

import uuid
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_org_id, get_current_user_id, require_permission
from app.models.api_key import ApiKey
from app.schemas.api_key import ApiKeyCreate, ApiKeyCreated, ApiKeyResponse
from app.services.api_keys import as_utc, generate_api_key
from app.services.audit import log_action
from app.services.errors import FieldValidationError, WorkflowError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth/api-keys", tags=["API keys"])


def _get_key(db: Session, org_id: uuid.UUID, key_id: uuid.UUID) -> ApiKey:
    record = db.query(ApiKey).filter(ApiKey.org_id == org_id, ApiKey.id == key_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="API key not found")
    return record


@router.post("/", response_model=ApiKeyCreated, status_code=201)
def create_api_key(
    body: ApiKeyCreate,
    org_id: uuid.UUID = Depends(get_current_org_id),
    user_id: uuid.UUID = Depends(get_current_user_id),
    _: str = Depends(require_permission("api_keys:create")),
    db: Session = Depends(get_db),
):
    if body.expires_at is not None and as_utc(body.expires_at) <= datetime.now(timezone.utc):
        raise FieldValidationError("expires_at", "expires_at must be in the future")

    raw_key, record = generate_api_key(
        db, org_id, body.name, body.scopes, created_by=user_id, expires_at=body.expires_at,
    )
    db.flush()
    log_action(db, org_id, user_id, "api_key.created", "api_key", record.id,
               {"name": record.name, "scopes": record.scopes})
    db.commit()
    db.refresh(record)
    logger.info("Issued API key %s (%s) for org %s", record.key_prefix, record.name, org_id)
    return ApiKeyCreated(api_key=raw_key, key=ApiKeyResponse.model_validate(record))


@router.get("/", response_model=list[ApiKeyResponse])
def list_api_keys(
    org_id: uuid.UUID = Depends(get_current_org_id),
    _: str = Depends(require_permission("api_keys:read")),
    db: Session = Depends(get_db),
):
    return db.query(ApiKey).filter(ApiKey.org_id == org_id).order_by(ApiKey.created_at.desc()).all()


@router.patch("/{key_id}/revoke", response_model=ApiKeyResponse)
def revoke_api_key(
    key_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_current_org_id),
    user_id: uuid.UUID = Depends(get_current_user_id),
    _: str = Depends(require_permission("api_keys:revoke")),
    db: Session = Depends(get_db),
):
    record = _get_key(db, org_id, key_id)
    if not record.is_active:
        raise WorkflowError("API key is already revoked")

    record.is_active = False
    log_action(db, org_id, user_id, "api_key.revoked", "api_key", record.id)
    db.commit()
    db.refresh(record)
    logger.info("Revoked API key %s", record.key_prefix)
    return record
