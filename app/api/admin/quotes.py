"""
Quotes API - staff management of customer quotes.

Quotes are created as DRAFT, priced from their line items, and sent to the
customer with an access link. Customer responses arrive through the public
quote and artwork endpoints.
"""
from fastapi import APIRouter, Depends, status, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select, func, or_, delete
from typing import Annotated, List, Optional
import logging
import secrets

from app.api.deps import DbSession, CurrentUser
from app.exceptions import ApiException, BusinessRuleError, ErrorCode, NotFoundError
from app.models.analytics import QuoteFunnelStage
from app.models.artwork_version import ArtworkVersion
from app.models.customer import Customer
from app.models.quote import Quote, QuoteStatus
from app.models.user import User
from app.schemas.audit import QuoteAuditLogOut
from app.schemas.quote import (
    QuoteCreate,
    QuoteUpdate,
    QuoteResponse,
    QuoteListResponse,
    QuoteSendResult,
)
from app.services import quote_audit
from app.services.activity_tracker import track_entity_activity, track_quote_funnel_event
from app.services.email_service import EmailService, get_email_service
from app.services.notifications import build_quote_url, send_quote_email
from app.services.quote_audit import AuditActor
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

PRICING_FIELDS = ("line_items", "discount", "tax", "shipping")


async def generate_quote_number(db) -> str:
    """Next sequential number for the current year, e.g. Q2026-0007."""
    prefix = f"Q{utcnow().year}-"
    result = await db.execute(
        select(Quote.quote_number)
        .where(Quote.quote_number.like(f"{prefix}%"))
        # Longer numbers are larger: Q2026-10000 sorts after Q2026-9999
        .order_by(func.length(Quote.quote_number).desc(), Quote.quote_number.desc())
        .limit(1)
    )
    last_number = result.scalar_one_or_none()

    next_number = 1
    if last_number:
        next_number = int(last_number[len(prefix):]) + 1
    return f"{prefix}{next_number:04d}"


async def get_quote_or_404(db, quote_id: str) -> Quote:
    result = await db.execute(
        select(Quote).where(Quote.id == quote_id).execution_options(populate_existing=True)
    )
    quote = result.scalar_one_or_none()
    if not quote:
        raise NotFoundError("Quote not found")
    return quote


async def _ensure_related(db, customer_id: Optional[int], owner_id: Optional[int]) -> None:
    if customer_id is not None and await db.get(Customer, customer_id) is None:
        raise NotFoundError("Customer not found")
    if owner_id is not None and await db.get(User, owner_id) is None:
        raise NotFoundError("Owner not found")


@router.get("", response_model=QuoteListResponse)
async def list_quotes(
    db: DbSession,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    customer_id: Optional[int] = None,
    status: Optional[QuoteStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
):
    """List quotes with pagination and filtering."""
    query = select(Quote)

    if customer_id:
        query = query.where(Quote.customer_id == customer_id)

    if status:
        query = query.where(Quote.status == status.value)

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Quote.quote_number.ilike(pattern),
                Quote.title.ilike(pattern),
                Quote.customer_name.ilike(pattern),
                Quote.customer_email.ilike(pattern),
                Quote.customer_company.ilike(pattern),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = query.order_by(Quote.created_at.desc()).offset(offset).limit(page_size)

    result = await db.execute(query)
    quotes = result.scalars().all()

    return QuoteListResponse(
        items=[QuoteResponse.model_validate(q) for q in quotes],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def create_quote(
    quote_data: QuoteCreate,
    db: DbSession,
    current_user: CurrentUser,
):
    """Create a new DRAFT quote."""
    if not (quote_data.customer_id or quote_data.customer_name or quote_data.customer_email):
        raise ApiException(
            "Either select a customer or provide customer name/email",
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
        )
    await _ensure_related(db, quote_data.customer_id, quote_data.owner_id)

    data = quote_data.model_dump(exclude={"line_items"})
    data["owner_id"] = quote_data.owner_id or current_user.id

    quote = Quote(**data)
    quote.quote_number = await generate_quote_number(db)
    quote.status = QuoteStatus.DRAFT.value
    quote.line_items = [item.model_dump() for item in quote_data.line_items]
    quote.calculate_totals()
    quote.last_modified_at = utcnow()

    db.add(quote)
    await db.commit()
    await db.refresh(quote)

    logger.info(
        "Quote created",
        extra={"user_id": current_user.id, "quote_id": quote.id, "quote_number": quote.quote_number},
    )

    actor = AuditActor.admin(current_user)
    await quote_audit.log_quote_created(
        db,
        quote,
        actor,
        {
            "quoteNumber": quote.quote_number,
            "status": quote.status,
            "total": str(quote.total),
            "lineItemCount": len(quote.line_items),
        },
    )
    await track_entity_activity(
        db,
        entity_type="QUOTE",
        entity_id=quote.id,
        activity_type="CREATED",
        user_id=current_user.id,
        new_value={"quoteNumber": quote.quote_number, "total": str(quote.total)},
    )
    return QuoteResponse.model_validate(quote)


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: str,
    db: DbSession,
    current_user: CurrentUser,
):
    """Get a single quote by ID."""
    quote = await get_quote_or_404(db, quote_id)
    return QuoteResponse.model_validate(quote)


@router.patch("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: str,
    quote_data: QuoteUpdate,
    db: DbSession,
    current_user: CurrentUser,
):
    """Update a quote. Totals are recomputed when pricing inputs change."""
    quote = await get_quote_or_404(db, quote_id)

    update_data = quote_data.model_dump(exclude_unset=True)
    if "status" in update_data and update_data["status"] is None:
        del update_data["status"]
    await _ensure_related(db, update_data.get("customer_id"), update_data.get("owner_id"))

    previous_status = quote.status
    repriced = any(field in update_data for field in PRICING_FIELDS)
    tracked = list(update_data) + (["subtotal", "total"] if repriced else [])
    previous_values = {field: getattr(quote, field) for field in tracked}

    for field, value in update_data.items():
        if field == "line_items":
            value = [item.model_dump() for item in quote_data.line_items]
        elif field == "status":
            value = value.value
        setattr(quote, field, value)

    if repriced:
        quote.calculate_totals()

    new_values = {field: getattr(quote, field) for field in tracked}
    changes = [
        field for field in previous_values
        if jsonable_encoder(previous_values[field]) != jsonable_encoder(new_values[field])
    ]

    quote.last_modified_at = utcnow()
    await db.commit()
    await db.refresh(quote)

    if changes:
        actor = AuditActor.admin(current_user)
        await quote_audit.log_quote_updated(
            db,
            quote,
            changes,
            actor,
            previous_value=jsonable_encoder({f: previous_values[f] for f in changes}),
            new_value=jsonable_encoder({f: new_values[f] for f in changes}),
        )
        if quote.status != previous_status:
            await quote_audit.log_quote_status_change(db, quote, previous_status, quote.status, actor)
        await track_entity_activity(
            db,
            entity_type="QUOTE",
            entity_id=quote.id,
            activity_type="STATUS_CHANGED" if quote.status != previous_status else "UPDATED",
            user_id=current_user.id,
            old_value=jsonable_encoder({f: previous_values[f] for f in changes}),
            new_value=jsonable_encoder({f: new_values[f] for f in changes}),
        )

    return QuoteResponse.model_validate(quote)


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote(
    quote_id: str,
    db: DbSession,
    current_user: CurrentUser,
):
    """Delete a quote and its archived artwork. The audit trail is kept."""
    quote = await get_quote_or_404(db, quote_id)
    quote_number = quote.quote_number

    await db.execute(delete(ArtworkVersion).where(ArtworkVersion.quote_id == quote_id))
    await db.delete(quote)
    await db.commit()

    logger.info("Quote deleted", extra={"user_id": current_user.id, "quote_id": quote_id})
    await quote_audit.log_quote_deleted(db, quote_id, quote_number, AuditActor.admin(current_user))
    await track_entity_activity(
        db,
        entity_type="QUOTE",
        entity_id=quote_id,
        activity_type="DELETED",
        user_id=current_user.id,
    )


@router.post("/{quote_id}/send", response_model=QuoteSendResult)
async def send_quote(
    quote_id: str,
    db: DbSession,
    current_user: CurrentUser,
    email_service: Annotated[EmailService, Depends(get_email_service)],
):
    """E-mail the quote link to the customer and mark the quote SENT."""
    quote = await get_quote_or_404(db, quote_id)

    recipient_email = quote.recipient_email
    if not recipient_email:
        raise BusinessRuleError("No customer email address available", ErrorCode.NO_CUSTOMER_EMAIL)

    if not quote.access_token:
        quote.access_token = secrets.token_hex(32)
        await db.commit()

    quote_url = build_quote_url(quote.access_token)
    email_result = await send_quote_email(db, email_service, quote, quote_url)
    if not email_result.get("success"):
        logger.error(
            "Failed to send quote email",
            extra={"quote_id": quote.id, "error": email_result.get("error")},
        )
        raise ApiException(
            email_result.get("error") or "Failed to send email",
            status_code=500,
            code=ErrorCode.EMAIL_FAILED,
        )

    previous_status = quote.status
    now = utcnow()
    quote.status = QuoteStatus.SENT.value
    quote.sent_at = now
    quote.last_modified_at = now
    await db.commit()
    await db.refresh(quote)

    logger.info(
        "Quote sent",
        extra={"user_id": current_user.id, "quote_id": quote.id, "to": recipient_email},
    )

    actor = AuditActor.admin(current_user)
    await quote_audit.log_quote_sent(db, quote, recipient_email, actor)
    if previous_status != QuoteStatus.SENT.value:
        await quote_audit.log_quote_status_change(
            db, quote, previous_status, QuoteStatus.SENT.value, actor
        )
    await track_entity_activity(
        db,
        entity_type="QUOTE",
        entity_id=quote.id,
        activity_type="SENT",
        user_id=current_user.id,
        old_value={"status": previous_status},
        new_value={"status": QuoteStatus.SENT.value, "sentTo": recipient_email},
    )
    await track_quote_funnel_event(
        db,
        QuoteFunnelStage.QUOTE_SENT,
        quote_id=quote.id,
        customer_id=quote.customer_id,
    )

    return QuoteSendResult(
        quote=QuoteResponse.model_validate(quote),
        quote_url=quote_url,
        message=f"Quote sent to {recipient_email}",
    )


@router.get("/{quote_id}/audit", response_model=List[QuoteAuditLogOut])
async def get_quote_audit(
    quote_id: str,
    db: DbSession,
    current_user: CurrentUser,
):
    """Audit trail for a quote, newest first."""
    await get_quote_or_404(db, quote_id)
    logs = await quote_audit.get_quote_audit_logs(db, quote_id)
    return [QuoteAuditLogOut.model_validate(log) for log in logs]
