import enum
import uuid

from sqlalchemy import Column, String, Text, Integer, DateTime, Date, Numeric, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.sql import func

from app.database import Base


class ContractType(str, enum.Enum):
    MASTER_SERVICES = "MASTER_SERVICES"
    STATEMENT_OF_WORK = "STATEMENT_OF_WORK"
    FIXED_TERM = "FIXED_TERM"
    RETAINER = "RETAINER"


class ContractStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    TERMINATED = "TERMINATED"
    EXPIRED = "EXPIRED"


class Contract(Base):
    __tablename__ = "supplier_contracts"
    __table_args__ = (UniqueConstraint("org_id", "contract_number", name="uq_contracts_org_number"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.org_id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(Uuid, ForeignKey("suppliers.id"), nullable=False, index=True)

    contract_number = Column(String(50), nullable=False)
    contract_type = Column(String(30), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    currency = Column(String(3), nullable=False, default="ZAR")
    total_value = Column(Numeric(14, 2), nullable=True)
    payment_terms_days = Column(Integer, nullable=False, default=30)
    notice_period_days = Column(Integer, nullable=True)

    status = Column(String(20), nullable=False, default=ContractStatus.DRAFT.value)
    signed_at = Column(DateTime(timezone=True), nullable=True)
    signed_by = Column(Uuid, nullable=True)
    terminated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
