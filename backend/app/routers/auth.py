"""
Authentication router: registration, login and the current user.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import Organization, User
from app.services.auth import (
    ROLE_CONTRACTOR,
    ROLE_PERMISSIONS,
    create_access_token,
    get_password_hash,
    has_permission,
    verify_password,
)
from app.services.errors import FieldValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


# ---------- schemas ----------

class RegisterRequest(BaseModel):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8)
    name: str | None = None
    org_code: str | None = None
    role: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    user_id: uuid.UUID
    email: str
    name: str | None = None
    role: str
    org_id: uuid.UUID | None = None
    is_active: bool = True

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# ---------- endpoints ----------

@router.post("/register", response_model=UserOut, status_code=201)
def register(
    body: RegisterRequest,
    caller: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    email = body.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    role = ROLE_CONTRACTOR
    if body.role and body.role != ROLE_CONTRACTOR:
        if body.role not in ROLE_PERMISSIONS:
            raise FieldValidationError("role", f"Unknown role: {body.role}")
        # the very first account may pick its role so an admin can be bootstrapped
        is_first_user = db.query(User).first() is None
        if not is_first_user and (caller is None or not has_permission(caller.role, "users:create")):
            raise HTTPException(status_code=403, detail="Only administrators can assign roles")
        role = body.role

    org_id = None
    if body.org_code:
        org = db.query(Organization).filter(Organization.org_code == body.org_code.strip().lower()).first()
        if not org:
            raise HTTPException(status_code=404, detail="Company code not found")
        org_id = org.org_id
    elif caller is not None:
        org_id = caller.org_id

    user = User(
        email=email,
        password_hash=get_password_hash(body.password),
        name=body.name,
        role=role,
        org_id=org_id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (role=%s, org=%s)", user.email, user.role, user.org_id)
    return user


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account disabled")

    token = create_access_token({"sub": str(user.user_id), "role": user.role})
    return LoginResponse(access_token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(user: Optional[User] = Depends(get_current_user)):
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
