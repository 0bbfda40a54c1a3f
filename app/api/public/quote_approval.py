"""Quote link: the customer reviews a quote and approves or declines it."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.deps import DbSession
from app.schemas.common import ApiResponse
from app.schemas.quote import PublicQuoteView, QuoteActionRequest, QuoteActionResult
from app.security.rate_limiter import rate_limit_public
from app.services import quote_workflow
from app.services.activity_tracker import get_client_ip
from app.services.email_service import EmailService, get_email_service

router = APIRouter()


@router.get("/{access_token}", response_model=ApiResponse[PublicQuoteView])
async def get_quote(access_token: str, db: DbSession):
    """Public view of a quote. Internal identifiers are never included."""
    quote = await quote_workflow.get_public_quote(db, access_token)
    return ApiResponse[PublicQuoteView](data=PublicQuoteView.from_quote(quote))


@router.post(
    "/{access_token}",
    response_model=ApiResponse[QuoteActionResult],
    dependencies=[Depends(rate_limit_public)],
)
async def respond_to_quote(
    access_token: str,
    body: QuoteActionRequest,
    request: Request,
    db: DbSession,
    email_service: Annotated[EmailService, Depends(get_email_service)],
):
    """Approve or decline a quote that is still awaiting a response."""
    outcome = await quote_workflow.respond_to_quote(
        db,
        access_token,
        body.action,
        email_service=email_service,
        ip_address=get_client_ip(request),
    )
    return ApiResponse[QuoteActionResult](
        data=QuoteActionResult(status=outcome.status, message=outcome.message)
    )
