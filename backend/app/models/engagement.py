import enum
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Date, Numeric, ForeignKey, Uuid
from sqlalchemy.sql import func

from app.database import Base


class RateType(str, enum.Enum):
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    FIXED = "FIXED"


class Engagement(Base):
    """A contractor's assignment to a project under a specific contract."""

    __tablename__ = "engagements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contractor_id = Column(Uuid, ForeignKey("contractors.id"), nullable=False, index=True)
    contract_id = Column(Uuid, ForeignKey("supplier_contracts.id"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=True, index=True)

    role = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    rate_type = Column(String(10), nullable=False, default=RateType.HOURLY.value)
    rate_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="ZAR")

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
