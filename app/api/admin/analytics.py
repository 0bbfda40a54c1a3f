"""Quote funnel analytics for the dashboard."""
from typing import Literal

from fastapi import APIRouter, Query

from app.api.deps import DbSession, CurrentUser
from app.schemas.audit import FunnelMetrics
from app.services.activity_tracker import get_quote_funnel_metrics

router = APIRouter()


@router.get("/funnel", response_model=FunnelMetrics)
async def quote_funnel(
    db: DbSession,
    current_user: CurrentUser,
    range: Literal["24h", "7d", "30d", "90d"] = Query("7d"),
):
    """Count quote funnel events per stage over the selected range."""
    counts = await get_quote_funnel_metrics(db, range)
    return FunnelMetrics(range=range, **counts)
