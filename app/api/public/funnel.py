"""Storefront funnel beacon: records progress through the quote funnel."""
from fastapi import APIRouter, Depends

from app.api.deps import DbSession
from app.exceptions import ApiException, ErrorCode
from app.models.analytics import QuoteFunnelStage
from app.schemas.audit import FunnelEventIn
from app.security.rate_limiter import rate_limit_public
from app.services.activity_tracker import track_quote_funnel_event

router = APIRouter()

VALID_STAGES = {stage.value for stage in QuoteFunnelStage}


@router.post("/funnel", dependencies=[Depends(rate_limit_public)])
async def record_funnel_event(event: FunnelEventIn, db: DbSession):
    if event.stage not in VALID_STAGES:
        raise ApiException("Invalid stage", status_code=400, code=ErrorCode.VALIDATION_ERROR)

    await track_quote_funnel_event(
        db,
        QuoteFunnelStage(event.stage),
        quote_id=event.quote_id,
        customer_id=event.customer_id,
        session_id=event.session_id,
        product_ids=event.product_ids,
        metadata=event.metadata,
    )
    return {"ok": True}
