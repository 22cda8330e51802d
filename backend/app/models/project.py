import enum
import uuid

from sqlalchemy import Column, String, Text, DateTime, Date, Numeric, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.sql import func

from app.database import Base


class ProjectStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("org_id", "code", name="uq_projects_org_code"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.org_id", ondelete="CASCADE"), nullable=False, index=True)

    code = Column(String(50), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    client_name = Column(String(200), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # spend is never stored here, see app.services.budget
    budget = Column(Numeric(14, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="ZAR")
    status = Column(String(20), nullable=False, default=ProjectStatus.ACTIVE.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
