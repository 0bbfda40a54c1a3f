from datetime import datetime
from typing import Optional, Any, Dict, List

from pydantic import Field

from app.schemas.common import CamelModel


class QuoteAuditLogOut(CamelModel):
    id: str
    quote_id: str
    action: str
    description: Optional[str] = None
    actor_type: str
    actor_id: Optional[str] = None
    actor_name: Optional[str] = None
    actor_email: Optional[str] = None
    previous_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="extra")
    created_at: datetime


class FunnelMetrics(CamelModel):
    """Funnel event counts per stage for a time range."""
    range: str
    viewed_products: int = 0
    started_quote: int = 0
    added_items: int = 0
    submitted_info: int = 0
    quote_sent: int = 0
    quote_approved: int = 0
    quote_rejected: int = 0


class FunnelEventIn(CamelModel):
    """Storefront funnel beacon. Stage is checked by the route."""
    stage: Optional[str] = None
    session_id: Optional[str] = Field(None, max_length=50)
    quote_id: Optional[str] = Field(None, max_length=36)
    customer_id: Optional[int] = None
    product_ids: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
