"""
Artwork Version: archived proofs for a quote.

The live proof stays on the quote row; a row is written here each time a
new proof replaces it, preserving how the customer responded to the old one.
"""
from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey
from app.utils.clock import utcnow
from app.database import Base
import uuid


class ArtworkVersion(Base):
    __tablename__ = "artwork_versions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    quote_id = Column(String(36), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)

    version = Column(Integer, nullable=False)
    url = Column(String(1000), nullable=False)
    file_name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False)  # PENDING, SENT, APPROVED, DECLINED

    sent_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    declined_at = Column(DateTime, nullable=True)
    customer_notes = Column(Text, nullable=True)

    uploaded_by_id = Column(Integer, nullable=True)
    uploaded_by_name = Column(String(200), nullable=True)
    uploaded_by_email = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ArtworkVersion v{self.version} of {self.quote_id}>"
