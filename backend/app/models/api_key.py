import uuid

from sqlalchemy import Column, String, Boolean, DateTime, JSON, ForeignKey, Uuid
from sqlalchemy.sql import func

from app.database import Base


class ApiKey(Base):
    """Credential for system-to-system callers. Only the HMAC of the key is stored."""

    __tablename__ = "api_keys"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.org_id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    key_hash = Column(String(64), nullable=False, unique=True, index=True)
    key_prefix = Column(String(10), nullable=False)
    scopes = Column(JSON, nullable=False, default=list)
    created_by = Column(Uuid, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
