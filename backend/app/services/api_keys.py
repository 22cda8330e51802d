"""
Issuing and checking API keys.

Keys look like ``cms_<64 hex chars>``. The plaintext is returned once at
creation; afterwards only its HMAC-SHA256 (keyed with API_KEY_SALT) and the
first ten characters are kept.
"""

import hmac
import logging
import os
import secrets
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.models.api_key import ApiKey
from app.services.auth import JWT_SECRET

logger = logging.getLogger(__name__)

API_KEY_SALT = os.getenv("API_KEY_SALT", JWT_SECRET)
KEY_PREFIX = "cms_"
PREFIX_LENGTH = 10


class ApiKeyRejected(Exception):
    """The presented key is unknown, revoked or expired (HTTP 401)."""


def hash_api_key(raw_key: str) -> str:
    return hmac.new(API_KEY_SALT.encode(), raw_key.encode(), "sha256").hexdigest()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def generate_api_key(
    db: Session,
    org_id: uuid.UUID,
    name: str,
    scopes: Iterable[str],
    created_by: uuid.UUID,
    expires_at: Optional[datetime] = None,
) -> tuple[str, ApiKey]:
    raw_key = f"{KEY_PREFIX}{secrets.token_hex(32)}"
    record = ApiKey(
        org_id=org_id,
        name=name,
        key_hash=hash_api_key(raw_key),
        key_prefix=raw_key[:PREFIX_LENGTH],
        scopes=sorted(set(scopes)),
        created_by=created_by,
        expires_at=as_utc(expires_at),
        is_active=True,
    )
    db.add(record)
    return raw_key, record


def validate_api_key(db: Session, raw_key: str) -> ApiKey:
    record = db.query(ApiKey).filter(ApiKey.key_hash == hash_api_key(raw_key)).first()
    if record is None:
        raise ApiKeyRejected("Invalid API key")
    if not record.is_active:
        raise ApiKeyRejected("API key is inactive")

    now = datetime.now(timezone.utc)
    if record.expires_at is not None and as_utc(record.expires_at) < now:
        logger.info("Rejected expired API key %s", record.key_prefix)
        raise ApiKeyRejected("API key has expired")

    record.last_used_at = now
    db.commit()
    return record
