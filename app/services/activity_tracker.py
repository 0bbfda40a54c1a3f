"""
Activity tracking: entity activity trail and quote conversion funnel.

Fire-and-forget writers. Tracking rows are analytics only and never
influence quote state, so a failed insert is logged and dropped rather
than surfaced to the customer.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import detached_session
from app.models.analytics import EntityActivity, QuoteFunnelEvent, QuoteFunnelStage
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

FUNNEL_RANGES = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}

# Stage -> key in the metrics payload
FUNNEL_KEYS = {
    QuoteFunnelStage.VIEWED_PRODUCTS: "viewedProducts",
    QuoteFunnelStage.STARTED_QUOTE: "startedQuote",
    QuoteFunnelStage.ADDED_ITEMS: "addedItems",
    QuoteFunnelStage.SUBMITTED_INFO: "submittedInfo",
    QuoteFunnelStage.QUOTE_SENT: "quoteSent",
    QuoteFunnelStage.QUOTE_APPROVED: "quoteApproved",
    QuoteFunnelStage.QUOTE_REJECTED: "quoteRejected",
}


async def _insert(db: AsyncSession, row) -> bool:
    try:
        async with detached_session(db) as session:
            session.add(row)
            await session.commit()
        return True
    except SQLAlchemyError as e:
        # Never let activity logging break the app
        logger.warning(f"Activity insert failed (non-critical): {e}")
        return False


async def track_entity_activity(
    db: AsyncSession,
    *,
    entity_type: str,
    entity_id: str,
    activity_type: str,
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    old_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Record an activity against an entity (QUOTE, CUSTOMER, ...)."""
    await _insert(
        db,
        EntityActivity(
            entity_type=entity_type,
            entity_id=str(entity_id),
            activity_type=activity_type,
            user_id=user_id,
            session_id=session_id,
            ip_address=ip_address,
            old_value=old_value,
            new_value=new_value,
            extra=metadata,
        ),
    )


async def track_quote_funnel_event(
    db: AsyncSession,
    stage: QuoteFunnelStage,
    *,
    quote_id: Optional[str] = None,
    customer_id: Optional[int] = None,
    session_id: Optional[str] = None,
    product_ids: Optional[List[str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Record progress through the quote funnel."""
    await _insert(
        db,
        QuoteFunnelEvent(
            stage=stage.value,
            quote_id=quote_id,
            customer_id=customer_id,
            session_id=session_id,
            product_ids=product_ids,
            extra=metadata,
        ),
    )


async def get_quote_funnel_metrics(db: AsyncSession, range_key: str = "7d") -> Dict[str, int]:
    """Count funnel events per stage over the given window.

    Unknown ranges fall back to 7 days.
    """
    window = FUNNEL_RANGES.get(range_key, FUNNEL_RANGES["7d"])
    since = utcnow() - window

    result = await db.execute(
        select(QuoteFunnelEvent.stage, func.count(QuoteFunnelEvent.id))
        .where(QuoteFunnelEvent.created_at >= since)
        .group_by(QuoteFunnelEvent.stage)
    )
    counts = {stage: count for stage, count in result.all()}

    return {key: counts.get(stage.value, 0) for stage, key in FUNNEL_KEYS.items()}


def get_client_ip(request) -> str:
    """Extract real client IP from request, respecting proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
