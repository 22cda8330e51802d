"""Suppliers and the contractors they provide."""
import enum
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Date, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.sql import func

from app.database import Base


class SupplierType(str, enum.Enum):
    COMPANY = "COMPANY"
    INDIVIDUAL = "INDIVIDUAL"


class SupplierStatus(str, enum.Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    INACTIVE = "INACTIVE"


class WorkerClassification(str, enum.Enum):
    INDEPENDENT_CONTRACTOR = "INDEPENDENT_CONTRACTOR"
    PERSONAL_SERVICE_PROVIDER = "PERSONAL_SERVICE_PROVIDER"
    LABOUR_BROKER_EMPLOYEE = "LABOUR_BROKER_EMPLOYEE"


class EngagementModel(str, enum.Enum):
    TIME_AND_MATERIALS = "TIME_AND_MATERIALS"
    FIXED_PRICE = "FIXED_PRICE"
    RETAINER = "RETAINER"


class Supplier(Base):
    __tablename__ = "suppliers"
    __table_args__ = (UniqueConstraint("org_id", "email", name="uq_suppliers_org_email"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.org_id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_type = Column(String(20), nullable=False)
    status = Column(String(30), nullable=False, default=SupplierStatus.PENDING_APPROVAL.value)

    company_name = Column(String(200), nullable=True)
    registration_number = Column(String(50), nullable=True)
    vat_number = Column(String(50), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    trading_name = Column(String(200), nullable=True)

    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(2), nullable=False, default="ZA")

    tax_number = Column(String(50), nullable=True)
    tax_clearance_expiry = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        if self.company_name:
            return self.company_name
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class Contractor(Base):
    __tablename__ = "contractors"
    __table_args__ = (UniqueConstraint("supplier_id", "email", name="uq_contractors_supplier_email"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    supplier_id = Column(Uuid, ForeignKey("suppliers.id"), nullable=False, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    id_number = Column(String(50), nullable=True)

    worker_classification = Column(
        String(40), nullable=False, default=WorkerClassification.INDEPENDENT_CONTRACTOR.value
    )
    engagement_model = Column(String(40), nullable=False, default=EngagementModel.TIME_AND_MATERIALS.value)
    tax_number = Column(String(50), nullable=True)
    tax_residency = Column(String(2), nullable=False, default="ZA")
    date_of_birth = Column(Date, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
