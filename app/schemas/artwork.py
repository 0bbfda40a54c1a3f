from pydantic import Field
from datetime import datetime
from typing import Optional, List, Literal

from app.schemas.common import CamelModel


class ArtworkResponseRequest(CamelModel):
    """Customer answer on the artwork page, for the proof or the quote."""
    action: Literal["approve", "decline"]
    notes: Optional[str] = Field(None, max_length=2000)
    type: Literal["artwork", "quote"] = "artwork"


class ArtworkResponseResult(CamelModel):
    action: str
    type: str
    responded_at: datetime


class ArtworkLineItem(CamelModel):
    name: str
    description: Optional[str] = None
    quantity: int


class PublicArtworkView(CamelModel):
    """Artwork proof plus enough of the quote to approve it in one place."""
    quote_number: str
    title: Optional[str] = None
    customer_name: str
    company_name: Optional[str] = None
    artwork_url: Optional[str] = None
    artwork_file_name: Optional[str] = None
    artwork_version: int
    artwork_sent_at: Optional[datetime] = None
    response_state: Literal["pending", "approved", "declined"]
    responded_at: Optional[datetime] = None
    notes: Optional[str] = None
    quote_status: str
    quote_state: Literal["pending", "approved", "declined"]
    quote_approved_at: Optional[datetime] = None
    quote_declined_at: Optional[datetime] = None
    line_items: List[ArtworkLineItem] = []

    @classmethod
    def from_quote(cls, quote) -> "PublicArtworkView":
        customer = quote.customer
        customer_name = (
            (customer.contact_name if customer else None)
            or quote.customer_name
            or (customer.company_name if customer else None)
            or quote.customer_company
            or "Customer"
        )
        return cls(
            quote_number=quote.quote_number,
            title=quote.title,
            customer_name=customer_name,
            company_name=quote.display_customer_company,
            artwork_url=quote.artwork_url,
            artwork_file_name=quote.artwork_file_name,
            artwork_version=quote.artwork_version,
            artwork_sent_at=quote.artwork_sent_at,
            response_state=quote.response_state,
            responded_at=quote.artwork_approved_at or quote.artwork_declined_at,
            notes=quote.artwork_notes,
            quote_status=quote.status,
            quote_state=quote.quote_state,
            quote_approved_at=quote.approved_at,
            quote_declined_at=quote.declined_at,
            line_items=[
                ArtworkLineItem(
                    name=item.get("name", ""),
                    description=item.get("description"),
                    quantity=item.get("quantity", 0),
                )
                for item in quote.line_items or []
            ],
        )


# Admin side

class ArtworkUploadRequest(CamelModel):
    artwork_url: str = Field(..., min_length=1, max_length=1000)
    artwork_file_name: str = Field(..., min_length=1, max_length=255)


class SendArtworkRequest(CamelModel):
    send_email: bool = True


class ArtworkDetails(CamelModel):
    """Current artwork state of a quote for the admin screen."""
    artwork_url: Optional[str] = None
    artwork_file_name: Optional[str] = None
    artwork_version: int
    artwork_status: str
    artwork_sent_at: Optional[datetime] = None
    artwork_approved_at: Optional[datetime] = None
    artwork_declined_at: Optional[datetime] = None
    artwork_notes: Optional[str] = None
    artwork_token: Optional[str] = None
    approval_url: Optional[str] = None


class ArtworkVersionOut(CamelModel):
    id: Optional[str] = None
    version: int
    url: str
    file_name: str
    status: str
    is_current: bool = False
    sent_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    customer_notes: Optional[str] = None
    uploaded_by_name: Optional[str] = None
    created_at: Optional[datetime] = None


class ArtworkVersionList(CamelModel):
    versions: List[ArtworkVersionOut]
    total_versions: int
    current_version: int


class ArtworkActionResult(CamelModel):
    artwork: ArtworkDetails
    message: str
    email_sent: Optional[bool] = None
