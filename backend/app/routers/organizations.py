"""Organizations router."""

import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_permission
from app.models.user import Organization
from app.schemas.common import Page
from app.schemas.organization import OrganizationCreate, OrganizationUpdate, OrganizationResponse
from app.services.pagination import PageParams, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/organizations", tags=["Organizations"])


def _normalize_code(code: str) -> str:
    return code.strip().lower()


@router.post("/", response_model=OrganizationResponse, status_code=201)
def create_organization(
    body: OrganizationCreate,
    _: str = Depends(require_permission("organizations:create")),
    db: Session = Depends(get_db),
):
    code = _normalize_code(body.org_code)
    if db.query(Organization).filter(Organization.org_code == code).first():
        raise HTTPException(status_code=409, detail="Organization code already exists")

    org = Organization(
        name=body.name.strip(),
        org_code=code,
        country=body.country.upper(),
        currency=body.currency.upper(),
        timezone=body.timezone,
    )
    db.add(org)
    db.commit()
    db.refresh(org)
    logger.info("Created organization %s (%s)", org.name, org.org_code)
    return org


@router.get("/", response_model=Page[OrganizationResponse])
def list_organizations(
    params: PageParams = Depends(page_params),
    _: str = Depends(require_permission("organizations:read")),
    db: Session = Depends(get_db),
):
    return paginate(db.query(Organization), params, Organization.name)


@router.get("/{org_id}", response_model=OrganizationResponse)
def get_organization(
    org_id: uuid.UUID,
    _: str = Depends(require_permission("organizations:read")),
    db: Session = Depends(get_db),
):
    org = db.get(Organization, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


@router.patch("/{org_id}", response_model=OrganizationResponse)
def update_organization(
    org_id: uuid.UUID,
    body: OrganizationUpdate,
    _: str = Depends(require_permission("organizations:update")),
    db: Session = Depends(get_db),
):
    org = db.get(Organization, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(org, field, value)
    db.commit()
    db.refresh(org)
    return org
