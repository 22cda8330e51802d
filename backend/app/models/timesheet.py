import enum
import uuid
from decimal import Decimal

from sqlalchemy import Column, String, Text, Integer, DateTime, Date, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class TimesheetStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Timesheet(Base):
    __tablename__ = "timesheets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contractor_id = Column(Uuid, ForeignKey("contractors.id"), nullable=False, index=True)
    engagement_id = Column(Uuid, ForeignKey("engagements.id"), nullable=True, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=True, index=True)
    invoice_id = Column(Uuid, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True, index=True)

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    status = Column(String(20), nullable=False, default=TimesheetStatus.DRAFT.value)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(Uuid, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    entries = relationship(
        "TimesheetEntry",
        order_by="TimesheetEntry.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def total_hours(self) -> Decimal:
        # undated rows are placeholders and never count
        return sum((Decimal(e.hours) for e in self.entries if e.date is not None), Decimal("0"))


class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    timesheet_id = Column(Uuid, ForeignKey("timesheets.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    date = Column(Date, nullable=True)
    hours = Column(Numeric(5, 2), nullable=False)
    description = Column(Text, server_default="", nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
