"""Notification log: every outbound notification attempt and its outcome."""

from sqlalchemy import Column, String, DateTime, Text, JSON
from app.utils.clock import utcnow
import uuid

from app.database import Base


class NotificationLog(Base):
    __tablename__ = "notification_log"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # INTERNAL_QUOTE_STATUS_CHANGE, CUSTOMER_QUOTE_SENT, CUSTOMER_ARTWORK_APPROVAL, INTERNAL_ARTWORK_RESPONSE
    type = Column(String(50), nullable=False, index=True)
    channel = Column(String(20), nullable=False, default="EMAIL")
    recipient = Column(String(255), nullable=False)
    subject = Column(String(500), nullable=True)

    status = Column(String(20), nullable=False)  # sent, failed
    error = Column(Text, nullable=True)

    # quote number, statuses, etc.
    context = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<NotificationLog {self.type} -> {self.recipient} ({self.status})>"
