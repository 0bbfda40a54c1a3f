from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, List
from decimal import Decimal

from app.models.quote import QuoteStatus
from app.schemas.common import CamelModel
from app.utils.clock import to_naive_utc


class LineItemIn(CamelModel):
    """Line item as entered by staff; totals are computed server side."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)


class LineItemOut(CamelModel):
    name: str
    description: Optional[str] = None
    quantity: int
    unit_price: float
    total: float


class _QuoteDates(CamelModel):
    @field_validator("valid_until", "requested_delivery", mode="after", check_fields=False)
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class QuoteCreate(_QuoteDates):
    """Schema for creating a quote. New quotes always start as DRAFT."""
    title: Optional[str] = Field(None, max_length=255)
    customer_id: Optional[int] = None
    customer_name: Optional[str] = Field(None, max_length=150)
    customer_company: Optional[str] = Field(None, max_length=200)
    customer_email: Optional[str] = Field(None, max_length=255)
    owner_id: Optional[int] = None
    line_items: List[LineItemIn] = []
    discount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    tax: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    shipping: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    valid_until: Optional[datetime] = None
    requested_delivery: Optional[datetime] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    artwork_required: bool = False


class QuoteUpdate(_QuoteDates):
    """Schema for updating a quote. Only supplied fields change."""
    title: Optional[str] = Field(None, max_length=255)
    customer_id: Optional[int] = None
    customer_name: Optional[str] = Field(None, max_length=150)
    customer_company: Optional[str] = Field(None, max_length=200)
    customer_email: Optional[str] = Field(None, max_length=255)
    owner_id: Optional[int] = None
    line_items: Optional[List[LineItemIn]] = None
    discount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    tax: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    shipping: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    valid_until: Optional[datetime] = None
    requested_delivery: Optional[datetime] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    artwork_required: Optional[bool] = None
    status: Optional[QuoteStatus] = None


class QuoteResponse(CamelModel):
    """Full quote as seen by staff."""
    id: str
    quote_number: str
    status: str
    title: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_company: Optional[str] = None
    customer_email: Optional[str] = None
    owner_id: Optional[int] = None
    line_items: List[LineItemOut] = []
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    valid_until: Optional[datetime] = None
    requested_delivery: Optional[datetime] = None
    access_token: Optional[str] = None
    artwork_token: Optional[str] = None
    sent_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    artwork_required: bool = False
    artwork_url: Optional[str] = None
    artwork_file_name: Optional[str] = None
    artwork_version: int = 1
    artwork_sent_at: Optional[datetime] = None
    artwork_approved_at: Optional[datetime] = None
    artwork_declined_at: Optional[datetime] = None
    artwork_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_modified_at: Optional[datetime] = None


class QuoteListResponse(CamelModel):
    """Paginated quote list response."""
    items: List[QuoteResponse]
    total: int
    page: int
    page_size: int


class PublicLineItem(CamelModel):
    name: str
    description: Optional[str] = None
    quantity: int
    unit_price: float
    total: float


class PublicQuoteView(CamelModel):
    """What a customer holding the access token may see. No internal ids."""
    quote_number: str
    title: Optional[str] = None
    customer_name: Optional[str] = None
    customer_company: Optional[str] = None
    notes: Optional[str] = None
    valid_until: Optional[datetime] = None
    requested_delivery: Optional[datetime] = None
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    status: str
    sent_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    line_items: List[PublicLineItem] = []

    @classmethod
    def from_quote(cls, quote) -> "PublicQuoteView":
        return cls(
            quote_number=quote.quote_number,
            title=quote.title,
            customer_name=quote.display_customer_name,
            customer_company=quote.display_customer_company,
            notes=quote.notes,
            valid_until=quote.valid_until,
            requested_delivery=quote.requested_delivery,
            subtotal=quote.subtotal,
            discount=quote.discount,
            tax=quote.tax,
            shipping=quote.shipping,
            total=quote.total,
            status=quote.status,
            sent_at=quote.sent_at,
            approved_at=quote.approved_at,
            declined_at=quote.declined_at,
            line_items=[
                PublicLineItem(
                    name=item.get("name", ""),
                    description=item.get("description"),
                    quantity=item.get("quantity", 0),
                    unit_price=item.get("unit_price", 0),
                    total=item.get("total", 0),
                )
                for item in quote.line_items or []
            ],
        )


class QuoteActionRequest(CamelModel):
    # Checked by the workflow so an unknown action gets INVALID_ACTION
    action: Optional[str] = None


class QuoteActionResult(CamelModel):
    status: str
    message: str


class QuoteSendResult(CamelModel):
    quote: QuoteResponse
    quote_url: str
    message: str
