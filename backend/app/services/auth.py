"""
Password hashing, signed access tokens and the role → permission table.

Tokens are ``<base64url(json payload)>.<hex hmac-sha256>``; the payload carries
``sub`` (user id) and ``exp`` (unix seconds).
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET", "contractor-cms-dev-secret-change-in-prod")
JWT_EXPIRY_HOURS = int(os.getenv("JWT_EXPIRY_HOURS", "24"))

_PBKDF2_ROUNDS = 100_000


# ---------- passwords ----------

def get_password_hash(password: str) -> str:
    salt = secrets.token_hex(16)
    h = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _PBKDF2_ROUNDS)
    return f"{salt}${h.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        salt, h = stored.split("$", 1)
    except (AttributeError, ValueError):
        return False
    expected = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _PBKDF2_ROUNDS)
    return hmac.compare_digest(expected.hex(), h)


# ---------- tokens ----------

def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def _b64decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _sign(body: str) -> str:
    return hmac.new(JWT_SECRET.encode(), body.encode(), "sha256").hexdigest()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    payload = dict(data)
    exp = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=JWT_EXPIRY_HOURS))
    payload["exp"] = int(exp.timestamp())
    body = _b64encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode())
    return f"{body}.{_sign(body)}"


def decode_access_token(token: str) -> Optional[dict]:
    """Return the payload, or None when the token is malformed, forged or expired."""
    body, sep, sig = token.rpartition(".")
    if not sep or not hmac.compare_digest(sig, _sign(body)):
        return None
    try:
        payload = json.loads(_b64decode(body))
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    if int(payload.get("exp", 0)) < int(datetime.now(timezone.utc).timestamp()):
        logger.debug("Rejected expired token for sub=%s", payload.get("sub"))
        return None
    return payload


# ---------- roles & permissions ----------

ROLE_CMS_ADMIN = "CMS_ADMIN"
ROLE_FINANCE_USER = "FINANCE_USER"
ROLE_CONTRACTOR_MANAGER = "CONTRACTOR_MANAGER"
ROLE_CONTRACTOR = "CONTRACTOR"
# carried by API-key callers; they are checked against the key's scopes instead
ROLE_API_KEY = "API_KEY"

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_CMS_ADMIN: frozenset({"*:*"}),
    ROLE_FINANCE_USER: frozenset({
        "invoices:*",
        "suppliers:read",
        "contractors:read",
        "contracts:read",
        "engagements:read",
        "projects:read",
        "timesheets:read",
        "timesheets:approve",
        "analytics:read",
    }),
    ROLE_CONTRACTOR_MANAGER: frozenset({
        "suppliers:*",
        "contractors:*",
        "contracts:*",
        "engagements:*",
        "projects:*",
        "timesheets:read",
        "timesheets:approve",
        "invoices:read",
        "analytics:read",
    }),
    ROLE_CONTRACTOR: frozenset({
        "timesheets:create",
        "timesheets:read",
        "timesheets:update",
        "timesheets:delete",
        "timesheets:submit",
        "invoices:read",
    }),
}


def grants(granted: Iterable[str], permission: str) -> bool:
    """True when ``granted`` holds ``permission`` itself or a wildcard covering it."""
    granted = set(granted)
    resource = permission.split(":", 1)[0]
    return "*:*" in granted or f"{resource}:*" in granted or permission in granted


def has_permission(role: Optional[str], permission: str) -> bool:
    return grants(ROLE_PERMISSIONS.get(role or "", frozenset()), permission)
