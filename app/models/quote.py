"""
SQLAlchemy model for Quotes.

A quote carries two approval cycles on one row: the commercial approval
(approved_at / declined_at) and the artwork proof approval
(artwork_approved_at / artwork_declined_at). Customers reach them through
two separate unguessable tokens.
"""
import enum
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base

CENTS = Decimal("0.01")


class QuoteStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    SENT = "SENT"
    ARTWORK_PENDING = "ARTWORK_PENDING"
    ARTWORK_APPROVED = "ARTWORK_APPROVED"
    ARTWORK_DECLINED = "ARTWORK_DECLINED"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"
    CONVERTED = "CONVERTED"


ARTWORK_STATUSES = {
    QuoteStatus.ARTWORK_PENDING.value,
    QuoteStatus.ARTWORK_APPROVED.value,
    QuoteStatus.ARTWORK_DECLINED.value,
}


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _tri_state(approved_at, declined_at) -> str:
    if approved_at:
        return "approved"
    if declined_at:
        return "declined"
    return "pending"


class Quote(Base):
    """Price proposal sent to a customer for approval."""
    __tablename__ = "quotes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Human-readable number, e.g. "Q2026-0042"
    quote_number = Column(String(50), unique=True, nullable=False, index=True)

    # Customer-facing secrets (read/approve quote, approve artwork)
    access_token = Column(String(128), unique=True, nullable=True, index=True)
    artwork_token = Column(String(128), unique=True, nullable=True, index=True)

    status = Column(String(30), nullable=False, default=QuoteStatus.DRAFT.value, index=True)

    title = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)

    # Customer link, with denormalised fallback when no customer record exists
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_name = Column(String(150), nullable=True)
    customer_company = Column(String(200), nullable=True)
    customer_email = Column(String(255), nullable=True)

    # Staff member notified when the customer responds
    owner_id = Column(Integer, ForeignKey("api_users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Each item: { name, description, quantity, unit_price, total }
    line_items = Column(JSON, nullable=False, default=list)

    # Pricing
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    shipping = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)

    valid_until = Column(DateTime, nullable=True)
    requested_delivery = Column(DateTime, nullable=True)

    # Quote approval cycle
    sent_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    declined_at = Column(DateTime, nullable=True)

    # Artwork approval cycle
    artwork_required = Column(Boolean, nullable=False, default=False)
    artwork_url = Column(String(1000), nullable=True)
    artwork_file_name = Column(String(255), nullable=True)
    artwork_version = Column(Integer, nullable=False, default=1)
    artwork_sent_at = Column(DateTime, nullable=True)
    artwork_approved_at = Column(DateTime, nullable=True)
    artwork_declined_at = Column(DateTime, nullable=True)
    artwork_notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    last_modified_at = Column(DateTime, nullable=True)

    customer = relationship("Customer", lazy="joined")
    owner = relationship("User", lazy="joined")

    __table_args__ = (
        Index('idx_quotes_customer_status', 'customer_id', 'status'),
        Index('idx_quotes_created_at', 'created_at'),
    )

    def calculate_totals(self):
        """Calculate line totals, subtotal and grand total."""
        subtotal = Decimal("0")
        processed_items = []
        for item in self.line_items or []:
            quantity = int(item.get('quantity', 0))
            unit_price = to_money(item.get('unit_price', 0))
            line_total = to_money(unit_price * quantity)
            processed_items.append({
                'name': item.get('name', ''),
                'description': item.get('description'),
                'quantity': quantity,
                'unit_price': float(unit_price),
                'total': float(line_total),
            })
            subtotal += line_total

        self.line_items = processed_items
        self.subtotal = to_money(subtotal)
        self.total = to_money(
            self.subtotal - to_money(self.discount) + to_money(self.tax) + to_money(self.shipping)
        )

    # Display helpers: a linked customer record wins over denormalised fields

    @property
    def display_customer_name(self) -> Optional[str]:
        if self.customer and self.customer.contact_name:
            return self.customer.contact_name
        return self.customer_name

    @property
    def display_customer_company(self) -> Optional[str]:
        if self.customer and self.customer.company_name:
            return self.customer.company_name
        return self.customer_company

    @property
    def recipient_email(self) -> Optional[str]:
        if self.customer and self.customer.email:
            return self.customer.email
        return self.customer_email

    @property
    def response_state(self) -> str:
        """Artwork response: pending | approved | declined."""
        return _tri_state(self.artwork_approved_at, self.artwork_declined_at)

    @property
    def quote_state(self) -> str:
        """Quote response: pending | approved | declined."""
        return _tri_state(self.approved_at, self.declined_at)

    @property
    def artwork_status(self) -> str:
        if self.artwork_approved_at:
            return "APPROVED"
        if self.artwork_declined_at:
            return "DECLINED"
        if self.artwork_sent_at:
            return "SENT"
        return "PENDING"

    def is_expired(self, now) -> bool:
        return self.valid_until is not None and self.valid_until < now

    def __repr__(self):
        return f"<Quote(id={self.id}, quote_number={self.quote_number}, status={self.status})>"
