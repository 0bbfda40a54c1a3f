"""
Analytics records: entity activity trail and quote funnel events.

Both tables are write-mostly and analytics-only; nothing in the approval
workflow reads them back.
"""
import enum
import uuid

from sqlalchemy import Column, String, DateTime, Integer, JSON, Index
from app.utils.clock import utcnow
from app.database import Base


class QuoteFunnelStage(str, enum.Enum):
    VIEWED_PRODUCTS = "VIEWED_PRODUCTS"
    STARTED_QUOTE = "STARTED_QUOTE"
    ADDED_ITEMS = "ADDED_ITEMS"
    SUBMITTED_INFO = "SUBMITTED_INFO"
    QUOTE_SENT = "QUOTE_SENT"
    QUOTE_APPROVED = "QUOTE_APPROVED"
    QUOTE_REJECTED = "QUOTE_REJECTED"


class EntityActivity(Base):
    __tablename__ = "entity_activity"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    entity_type = Column(String(30), nullable=False, index=True)  # QUOTE, CUSTOMER, PRODUCT
    entity_id = Column(String(50), nullable=False, index=True)
    activity_type = Column(String(30), nullable=False)  # CREATED, UPDATED, STATUS_CHANGED, SENT, DELETED

    user_id = Column(Integer, nullable=True)
    session_id = Column(String(50), nullable=True)
    ip_address = Column(String(45), nullable=True)

    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    extra = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_entity_activity_entity", "entity_type", "entity_id"),
    )

    def __repr__(self):
        return f"<EntityActivity {self.entity_type}:{self.activity_type} {self.entity_id}>"


class QuoteFunnelEvent(Base):
    __tablename__ = "quote_funnel_events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    stage = Column(String(30), nullable=False, index=True)
    session_id = Column(String(50), nullable=True)
    quote_id = Column(String(36), nullable=True, index=True)
    customer_id = Column(Integer, nullable=True)
    product_ids = Column(JSON, nullable=True)
    extra = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_quote_funnel_stage_created", "stage", "created_at"),
    )

    def __repr__(self):
        return f"<QuoteFunnelEvent {self.stage} quote={self.quote_id}>"
