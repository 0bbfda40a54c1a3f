"""
Customer approval workflow for quotes and artwork proofs.

Two token-gated cycles share one quote row:

* quote approval, reached with ``access_token``: SENT -> APPROVED | DECLINED
* artwork approval, reached with ``artwork_token``: the proof is approved or
  declined, then the quote itself may be approved from the same page

Every transition is a single conditional UPDATE whose WHERE clause repeats
the precondition that was just checked. If another request won the race the
update touches no rows and the caller gets the same error a later request
would have seen. Audit, analytics and owner notifications run only after the
transition has committed.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ApiException, BusinessRuleError, ErrorCode, NotFoundError
from app.models.analytics import QuoteFunnelStage
from app.models.quote import Quote, QuoteStatus
from app.services import quote_audit
from app.services.activity_tracker import track_entity_activity, track_quote_funnel_event
from app.services.email_service import EmailService
from app.services.notifications import (
    notify_artwork_response,
    notify_quote_owner_status_change,
)
from app.services.quote_audit import AuditActor
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

QUOTE_ACTIONS = ("approve", "decline")

QUOTE_APPROVED_MESSAGE = "Thank you! Your quote has been approved. We will be in touch shortly."
QUOTE_DECLINED_MESSAGE = (
    "Quote declined. If you have any questions or would like to discuss alternatives, please contact us."
)
ARTWORK_APPROVED_MESSAGE = "Thank you! Your artwork has been approved."
ARTWORK_DECLINED_MESSAGE = (
    "Thank you for your feedback. We will revise the artwork and send you a new version."
)
QUOTE_VIA_ARTWORK_APPROVED_MESSAGE = (
    "Thank you! Your quote has been approved. We will begin processing your order."
)
QUOTE_VIA_ARTWORK_DECLINED_MESSAGE = (
    "Thank you for your feedback. Please contact us to discuss your requirements."
)

ALREADY_RESPONDED_QUOTE = (
    "You have already responded to this quote. Please contact us if you need to make changes."
)
ALREADY_RESPONDED_ARTWORK = (
    "You have already responded to this artwork. Please contact us if you need to make changes."
)


@dataclass
class QuoteResponseOutcome:
    status: str
    message: str


@dataclass
class ArtworkResponseOutcome:
    action: str
    type: str
    responded_at: datetime
    message: str


async def _load_quote(db: AsyncSession, *criteria) -> Optional[Quote]:
    result = await db.execute(
        select(Quote).where(*criteria).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _ensure_open_for_response(quote: Quote, now: datetime) -> None:
    """Raise unless the customer may still approve or decline."""
    if quote.status != QuoteStatus.SENT.value:
        raise BusinessRuleError(
            f"This quote has already been {quote.status.lower()}.",
            ErrorCode.INVALID_STATUS,
        )
    if quote.is_expired(now):
        raise BusinessRuleError(
            "This quote has expired and is no longer valid.",
            ErrorCode.QUOTE_EXPIRED,
        )


# Quote link (/api/quote/{access_token})

async def get_public_quote(db: AsyncSession, access_token: str) -> Quote:
    quote = await _load_quote(db, Quote.access_token == access_token)
    if quote is None:
        raise NotFoundError("Quote not found")
    return quote


async def respond_to_quote(
    db: AsyncSession,
    access_token: str,
    action: Optional[str],
    *,
    email_service: EmailService,
    ip_address: Optional[str] = None,
) -> QuoteResponseOutcome:
    """Approve or decline a SENT, unexpired quote on behalf of the customer."""
    if action not in QUOTE_ACTIONS:
        raise ApiException(
            'Invalid action. Must be "approve" or "decline".',
            status_code=400,
            code=ErrorCode.INVALID_ACTION,
        )

    quote = await get_public_quote(db, access_token)
    now = utcnow()
    _ensure_open_for_response(quote, now)

    previous_status = quote.status
    approve = action == "approve"
    new_status = QuoteStatus.APPROVED.value if approve else QuoteStatus.DECLINED.value

    result = await db.execute(
        update(Quote)
        .where(
            Quote.id == quote.id,
            Quote.status == QuoteStatus.SENT.value,
            or_(Quote.valid_until.is_(None), Quote.valid_until >= now),
        )
        .values(
            status=new_status,
            approved_at=now if approve else None,
            declined_at=None if approve else now,
            last_modified_at=now,
        )
    )
    if result.rowcount == 0:
        # A concurrent response won; report what it left behind
        await db.rollback()
        quote = await get_public_quote(db, access_token)
        _ensure_open_for_response(quote, now)
        raise ApiException(
            "This quote was modified by another request. Please reload and try again.",
            status_code=409,
            code=ErrorCode.CONFLICT,
        )
    await db.commit()
    await db.refresh(quote)

    logger.info(
        f"Quote {action}d by customer",
        extra={"quote_id": quote.id, "quote_number": quote.quote_number, "status": new_status},
    )

    await quote_audit.log_quote_status_change(
        db, quote, previous_status, new_status, AuditActor.customer(quote.recipient_email)
    )
    await track_entity_activity(
        db,
        entity_type="QUOTE",
        entity_id=quote.id,
        activity_type="STATUS_CHANGED",
        ip_address=ip_address,
        old_value={"status": previous_status},
        new_value={"status": new_status},
        metadata={"by": "customer"},
    )
    await track_quote_funnel_event(
        db,
        QuoteFunnelStage.QUOTE_APPROVED if approve else QuoteFunnelStage.QUOTE_REJECTED,
        quote_id=quote.id,
        customer_id=quote.customer_id,
    )
    if quote.owner is not None:
        await notify_quote_owner_status_change(
            db, email_service, quote, quote.owner, previous_status, new_status
        )

    return QuoteResponseOutcome(
        status=new_status,
        message=QUOTE_APPROVED_MESSAGE if approve else QUOTE_DECLINED_MESSAGE,
    )


# Artwork link (/api/artwork/{artwork_token})

async def get_artwork_view(db: AsyncSession, artwork_token: str) -> Quote:
    """Quote behind an artwork link, once the proof has been shared."""
    quote = await _load_quote(db, Quote.artwork_token == artwork_token)
    if quote is None:
        raise NotFoundError("Artwork not found or link expired")
    if quote.artwork_sent_at is None:
        raise BusinessRuleError("Artwork has not been shared yet", ErrorCode.NOT_SHARED)
    return quote


async def respond_to_artwork(
    db: AsyncSession,
    artwork_token: str,
    action: str,
    notes: Optional[str] = None,
    response_type: str = "artwork",
    *,
    email_service: EmailService,
    ip_address: Optional[str] = None,
) -> ArtworkResponseOutcome:
    """Record the customer's answer on the artwork page.

    ``response_type`` selects the cycle: ``artwork`` answers the proof,
    ``quote`` answers the quote itself and requires an approved proof.
    """
    quote = await get_artwork_view(db, artwork_token)
    customer_email = quote.recipient_email or "unknown"
    previous_status = quote.status
    approve = action == "approve"
    now = utcnow()

    if response_type == "quote":
        await _respond_to_quote_via_artwork(db, quote, approve, now)
    else:
        await _respond_to_proof(db, quote, approve, notes, now)
    await db.refresh(quote)

    new_status = quote.status
    actor = AuditActor.customer(customer_email)
    logger.info(
        f"{'Quote' if response_type == 'quote' else 'Artwork'} {action}d via artwork link",
        extra={"quote_id": quote.id, "quote_number": quote.quote_number, "status": new_status},
    )

    if response_type == "quote":
        if approve:
            await quote_audit.log_quote_approved_by_customer(db, quote, customer_email)
        else:
            await quote_audit.log_quote_declined_by_customer(db, quote, customer_email, notes)
        await quote_audit.log_quote_status_change(db, quote, previous_status, new_status, actor)
        await track_entity_activity(
            db,
            entity_type="QUOTE",
            entity_id=quote.id,
            activity_type="STATUS_CHANGED",
            ip_address=ip_address,
            old_value={"status": previous_status},
            new_value={"status": new_status},
            metadata={"by": "customer", "via": "artwork"},
        )
        await track_quote_funnel_event(
            db,
            QuoteFunnelStage.QUOTE_APPROVED if approve else QuoteFunnelStage.QUOTE_REJECTED,
            quote_id=quote.id,
            customer_id=quote.customer_id,
        )
        if quote.owner is not None:
            await notify_quote_owner_status_change(
                db, email_service, quote, quote.owner, previous_status, new_status
            )
        message = QUOTE_VIA_ARTWORK_APPROVED_MESSAGE if approve else QUOTE_VIA_ARTWORK_DECLINED_MESSAGE
    else:
        if approve:
            await quote_audit.log_artwork_approved_by_customer(db, quote, customer_email, notes)
        else:
            await quote_audit.log_artwork_declined_by_customer(db, quote, customer_email, notes)
        await quote_audit.log_quote_status_change(db, quote, previous_status, new_status, actor)
        if quote.owner is not None:
            await notify_artwork_response(db, email_service, quote, quote.owner, action, notes)
        message = ARTWORK_APPROVED_MESSAGE if approve else ARTWORK_DECLINED_MESSAGE

    return ArtworkResponseOutcome(
        action=action,
        type=response_type,
        responded_at=now,
        message=message,
    )


async def _respond_to_quote_via_artwork(
    db: AsyncSession, quote: Quote, approve: bool, now: datetime
) -> None:
    if quote.artwork_approved_at is None:
        raise BusinessRuleError(
            "Please approve the artwork first before approving the quote.",
            ErrorCode.ARTWORK_NOT_APPROVED,
        )
    if quote.approved_at is not None or quote.declined_at is not None:
        raise BusinessRuleError(ALREADY_RESPONDED_QUOTE, ErrorCode.ALREADY_RESPONDED)

    result = await db.execute(
        update(Quote)
        .where(
            Quote.id == quote.id,
            Quote.artwork_approved_at.is_not(None),
            Quote.approved_at.is_(None),
            Quote.declined_at.is_(None),
        )
        .values(
            status=QuoteStatus.APPROVED.value if approve else QuoteStatus.DECLINED.value,
            approved_at=now if approve else None,
            declined_at=None if approve else now,
            last_modified_at=now,
        )
    )
    if result.rowcount == 0:
        await db.rollback()
        raise BusinessRuleError(ALREADY_RESPONDED_QUOTE, ErrorCode.ALREADY_RESPONDED)
    await db.commit()


async def _respond_to_proof(
    db: AsyncSession, quote: Quote, approve: bool, notes: Optional[str], now: datetime
) -> None:
    if quote.artwork_approved_at is not None or quote.artwork_declined_at is not None:
        raise BusinessRuleError(ALREADY_RESPONDED_ARTWORK, ErrorCode.ALREADY_RESPONDED)

    result = await db.execute(
        update(Quote)
        .where(
            Quote.id == quote.id,
            Quote.artwork_sent_at.is_not(None),
            Quote.artwork_approved_at.is_(None),
            Quote.artwork_declined_at.is_(None),
        )
        .values(
            status=QuoteStatus.ARTWORK_APPROVED.value if approve else QuoteStatus.ARTWORK_DECLINED.value,
            artwork_approved_at=now if approve else None,
            artwork_declined_at=None if approve else now,
            artwork_notes=notes or None,
            last_modified_at=now,
        )
    )
    if result.rowcount == 0:
        await db.rollback()
        raise BusinessRuleError(ALREADY_RESPONDED_ARTWORK, ErrorCode.ALREADY_RESPONDED)
    await db.commit()
