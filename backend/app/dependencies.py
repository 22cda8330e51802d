"""
Authentication and authorization dependencies.

Supports bearer-token auth for users, X-API-Key auth for integrations, and a
demo-header fallback when AUTH_MODE=demo. Every route resolves one Principal
per request; the helpers below pick fields off it.
"""

import os
import uuid
import logging
from dataclasses import dataclass
from fastapi import HTTPException, Header, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.api_key import ApiKey
from app.models.user import User
from app.services.api_keys import ApiKeyRejected, validate_api_key
from app.services.auth import decode_access_token, grants, has_permission, ROLE_API_KEY, ROLE_CMS_ADMIN

logger = logging.getLogger(__name__)

AUTH_MODE = os.getenv("AUTH_MODE", "demo")  # "demo" or "jwt"

# Demo placeholders, used only when AUTH_MODE=demo and no token is provided
DEMO_ORG_ID = "00000000-0000-0000-0000-000000000000"
DEMO_USER_ID = "00000000-0000-0000-0000-000000000000"
DEMO_ROLE = ROLE_CMS_ADMIN


@dataclass(frozen=True)
class Principal:
    user_id: uuid.UUID
    org_id: Optional[uuid.UUID]
    role: str
    # set for API-key callers only
    scopes: Optional[frozenset[str]] = None

    def can(self, permission: str) -> bool:
        if self.scopes is not None:
            return grants(self.scopes, permission)
        return has_permission(self.role, permission)


def _as_uuid(value) -> uuid.UUID:
    if value is None:
        raise ValueError("None is not a UUID")
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Extract user from Bearer token. Returns None if no token is sent."""
    if not authorization:
        return None

    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    try:
        user_uuid = _as_uuid(sub)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token subject (user id)")

    user = db.query(User).filter(User.user_id == user_uuid).first()
    if not user or user.is_active is False:
        raise HTTPException(status_code=401, detail="User not found or disabled")

    return user


def get_api_key(
    x_api_key: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> Optional[ApiKey]:
    if not x_api_key or not x_api_key.strip():
        return None
    try:
        return validate_api_key(db, x_api_key.strip())
    except ApiKeyRejected as exc:
        raise HTTPException(status_code=401, detail=str(exc))


def get_principal(
    user: Optional[User] = Depends(get_current_user),
    api_key: Optional[ApiKey] = Depends(get_api_key),
    x_user_id: Optional[str] = Header(default=None),
    x_org_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Principal:
    if user is not None:
        return Principal(user_id=user.user_id, org_id=user.org_id, role=str(user.role))

    if api_key is not None:
        return Principal(
            user_id=api_key.created_by,
            org_id=api_key.org_id,
            role=ROLE_API_KEY,
            scopes=frozenset(api_key.scopes or ()),
        )

    if AUTH_MODE == "demo":
        try:
            return Principal(
                user_id=_as_uuid(x_user_id or DEMO_USER_ID),
                org_id=_as_uuid(x_org_id or DEMO_ORG_ID),
                role=x_user_role or DEMO_ROLE,
            )
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid X-User-Id / X-Org-Id (must be UUID)")

    raise HTTPException(status_code=401, detail="Not authenticated")


def get_current_user_id(principal: Principal = Depends(get_principal)) -> uuid.UUID:
    return principal.user_id


def get_current_org_id(principal: Principal = Depends(get_principal)) -> uuid.UUID:
    if principal.org_id is None:
        raise HTTPException(status_code=403, detail="User is not assigned to an organization")
    return principal.org_id


def get_current_role(principal: Principal = Depends(get_principal)) -> str:
    return principal.role


def require_permission(permission: str):
    """Dependency factory: 403 unless the caller's role (or API-key scopes) grants ``permission``."""

    def _check(principal: Principal = Depends(get_principal)) -> str:
        if not principal.can(permission):
            logger.info("Denied %s to user %s (role=%s)", permission, principal.user_id, principal.role)
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission}")
        return principal.role

    return _check
