"""
Quote Audit Log: append-only trail of every change to a quote.

Each row captures: what happened, who did it (admin, customer or system),
and the before/after values. Rows are never read to make decisions.
"""
import enum
import uuid

from sqlalchemy import Column, String, DateTime, Text, JSON, Index
from app.utils.clock import utcnow
from app.database import Base


class QuoteAuditAction(str, enum.Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    SENT_TO_CUSTOMER = "SENT_TO_CUSTOMER"
    APPROVED_BY_CUSTOMER = "APPROVED_BY_CUSTOMER"
    DECLINED_BY_CUSTOMER = "DECLINED_BY_CUSTOMER"
    PRICING_UPDATED = "PRICING_UPDATED"
    DELETED = "DELETED"
    ARTWORK_UPLOADED = "ARTWORK_UPLOADED"
    ARTWORK_SENT_TO_CUSTOMER = "ARTWORK_SENT_TO_CUSTOMER"
    ARTWORK_APPROVED_BY_CUSTOMER = "ARTWORK_APPROVED_BY_CUSTOMER"
    ARTWORK_DECLINED_BY_CUSTOMER = "ARTWORK_DECLINED_BY_CUSTOMER"
    ARTWORK_UPDATED = "ARTWORK_UPDATED"
    ARTWORK_REMOVED = "ARTWORK_REMOVED"


class AuditActorType(str, enum.Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"
    SYSTEM = "SYSTEM"


class QuoteAuditLog(Base):
    __tablename__ = "quote_audit_log"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # No FK: the trail outlives a deleted quote
    quote_id = Column(String(36), nullable=False, index=True)

    # What happened
    action = Column(String(40), nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Who did it
    actor_type = Column(String(20), nullable=False, default=AuditActorType.SYSTEM.value)
    actor_id = Column(String(50), nullable=True)
    actor_name = Column(String(200), nullable=True)
    actor_email = Column(String(255), nullable=True)

    # What changed
    previous_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    extra = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_quote_audit_quote_created", "quote_id", "created_at"),
    )

    def __repr__(self):
        return f"<QuoteAuditLog {self.action} on {self.quote_id}>"
