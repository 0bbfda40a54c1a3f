from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from app.database import Base


class Customer(Base):
    """Customer account that quotes can be linked to."""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    contact_name = Column(String(150), nullable=False)
    company_name = Column(String(200))
    email = Column(String(255), index=True)
    phone = Column(String(30))
    notes = Column(Text)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    def __repr__(self):
        return f"<Customer {self.contact_name} ({self.company_name or 'individual'})>"
