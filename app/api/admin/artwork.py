"""
Artwork API - proofs attached to a quote.

Uploading replaces the live proof and archives the previous one with the
customer's response. Sending shares the proof through the quote's artwork
link and moves the quote to ARTWORK_PENDING.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import select
from typing import Annotated, Optional
import logging
import secrets

from app.api.admin.quotes import get_quote_or_404
from app.api.deps import DbSession, CurrentUser, ArtworkManager, SuperAdmin
from app.exceptions import BusinessRuleError, ErrorCode
from app.models.artwork_version import ArtworkVersion
from app.models.quote import ARTWORK_STATUSES, Quote, QuoteStatus
from app.schemas.artwork import (
    ArtworkActionResult,
    ArtworkDetails,
    ArtworkUploadRequest,
    ArtworkVersionList,
    ArtworkVersionOut,
    SendArtworkRequest,
)
from app.services import quote_audit
from app.services.email_service import EmailService, get_email_service
from app.services.notifications import build_artwork_url, notify_artwork_for_approval
from app.services.quote_audit import AuditActor
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


def _artwork_details(quote: Quote) -> ArtworkDetails:
    return ArtworkDetails(
        artwork_url=quote.artwork_url,
        artwork_file_name=quote.artwork_file_name,
        artwork_version=quote.artwork_version,
        artwork_status=quote.artwork_status,
        artwork_sent_at=quote.artwork_sent_at,
        artwork_approved_at=quote.artwork_approved_at,
        artwork_declined_at=quote.artwork_declined_at,
        artwork_notes=quote.artwork_notes,
        artwork_token=quote.artwork_token,
        approval_url=build_artwork_url(quote.artwork_token) if quote.artwork_token else None,
    )


@router.get("/{quote_id}/artwork", response_model=ArtworkDetails)
async def get_artwork(
    quote_id: str,
    db: DbSession,
    current_user: CurrentUser,
):
    quote = await get_quote_or_404(db, quote_id)
    return _artwork_details(quote)


@router.post("/{quote_id}/artwork", response_model=ArtworkDetails)
async def upload_artwork(
    quote_id: str,
    artwork: ArtworkUploadRequest,
    db: DbSession,
    current_user: ArtworkManager,
):
    """Attach a new proof, archiving the current one first."""
    quote = await get_quote_or_404(db, quote_id)

    is_update = bool(quote.artwork_url)
    previous_file_name = quote.artwork_file_name
    previous_url = quote.artwork_url

    if is_update and quote.artwork_file_name:
        db.add(
            ArtworkVersion(
                quote_id=quote.id,
                version=quote.artwork_version,
                url=quote.artwork_url,
                file_name=quote.artwork_file_name,
                status=quote.artwork_status,
                sent_at=quote.artwork_sent_at,
                approved_at=quote.artwork_approved_at,
                declined_at=quote.artwork_declined_at,
                customer_notes=quote.artwork_notes,
                uploaded_by_id=current_user.id,
                uploaded_by_name=current_user.full_name,
                uploaded_by_email=current_user.email,
            )
        )

    quote.artwork_required = True
    quote.artwork_url = artwork.artwork_url
    quote.artwork_file_name = artwork.artwork_file_name
    quote.artwork_version = quote.artwork_version + 1 if is_update else 1
    # New proof has not been shared or answered yet
    quote.artwork_sent_at = None
    quote.artwork_approved_at = None
    quote.artwork_declined_at = None
    quote.artwork_notes = None
    if not quote.artwork_token:
        quote.artwork_token = secrets.token_hex(32)
    quote.last_modified_at = utcnow()

    await db.commit()
    await db.refresh(quote)

    logger.info(
        "Artwork uploaded",
        extra={
            "user_id": current_user.id,
            "quote_id": quote.id,
            "file_name": quote.artwork_file_name,
            "version": quote.artwork_version,
        },
    )

    actor = AuditActor.admin(current_user)
    if is_update:
        await quote_audit.log_artwork_updated(db, quote, previous_file_name, previous_url, actor)
    else:
        await quote_audit.log_artwork_uploaded(db, quote, actor)

    return _artwork_details(quote)


@router.put("/{quote_id}/artwork", response_model=ArtworkActionResult)
async def send_artwork(
    quote_id: str,
    db: DbSession,
    current_user: ArtworkManager,
    email_service: Annotated[EmailService, Depends(get_email_service)],
    body: Optional[SendArtworkRequest] = None,
):
    """Share the current proof with the customer for approval."""
    quote = await get_quote_or_404(db, quote_id)
    send_email = body.send_email if body is not None else True

    if not quote.artwork_url or not quote.artwork_token:
        raise BusinessRuleError("No artwork uploaded", ErrorCode.NO_ARTWORK)

    customer_email = quote.recipient_email
    if not customer_email:
        raise BusinessRuleError("No customer email available", ErrorCode.NO_CUSTOMER_EMAIL)

    previous_status = quote.status
    now = utcnow()
    quote.status = QuoteStatus.ARTWORK_PENDING.value
    quote.artwork_sent_at = now
    quote.artwork_approved_at = None
    quote.artwork_declined_at = None
    quote.artwork_notes = None
    quote.last_modified_at = now

    await db.commit()
    await db.refresh(quote)

    actor = AuditActor.admin(current_user)
    await quote_audit.log_artwork_sent_to_customer(db, quote, customer_email, actor)
    if previous_status != QuoteStatus.ARTWORK_PENDING.value:
        await quote_audit.log_quote_status_change(
            db, quote, previous_status, QuoteStatus.ARTWORK_PENDING.value, actor
        )

    approval_url = build_artwork_url(quote.artwork_token)
    email_sent = None
    message = "Artwork marked as sent"
    if send_email:
        email_result = await notify_artwork_for_approval(db, email_service, quote, approval_url)
        email_sent = bool(email_result.get("success"))
        if email_sent:
            logger.info("Artwork email sent to customer", extra={"quote_id": quote.id})
            message = f"Artwork sent to {customer_email} for approval"
        else:
            logger.warning(
                "Failed to send artwork email",
                extra={"quote_id": quote.id, "error": email_result.get("error")},
            )
            message = f"Quote updated but email failed: {email_result.get('error')}"

    return ArtworkActionResult(
        artwork=_artwork_details(quote),
        message=message,
        email_sent=email_sent,
    )


@router.delete("/{quote_id}/artwork", response_model=ArtworkActionResult)
async def remove_artwork(
    quote_id: str,
    db: DbSession,
    current_user: SuperAdmin,
):
    """Clear the proof and its link. artwork_required is left as set."""
    quote = await get_quote_or_404(db, quote_id)

    quote.artwork_url = None
    quote.artwork_file_name = None
    quote.artwork_token = None
    quote.artwork_sent_at = None
    quote.artwork_approved_at = None
    quote.artwork_declined_at = None
    quote.artwork_notes = None
    quote.artwork_version = 1
    if quote.status in ARTWORK_STATUSES:
        quote.status = QuoteStatus.PENDING.value
    quote.last_modified_at = utcnow()

    await db.commit()
    await db.refresh(quote)

    logger.info("Artwork removed from quote", extra={"user_id": current_user.id, "quote_id": quote.id})
    await quote_audit.log_artwork_removed(db, quote, AuditActor.admin(current_user))

    return ArtworkActionResult(artwork=_artwork_details(quote), message="Artwork removed successfully")


@router.get("/{quote_id}/artwork/versions", response_model=ArtworkVersionList)
async def list_artwork_versions(
    quote_id: str,
    db: DbSession,
    current_user: CurrentUser,
):
    """Current proof followed by archived versions, newest first."""
    quote = await get_quote_or_404(db, quote_id)

    result = await db.execute(
        select(ArtworkVersion)
        .where(ArtworkVersion.quote_id == quote.id)
        .order_by(ArtworkVersion.version.desc())
    )
    archived = [ArtworkVersionOut.model_validate(v) for v in result.scalars().all()]

    versions = []
    if quote.artwork_url and quote.artwork_file_name:
        versions.append(
            ArtworkVersionOut(
                id="current",
                version=quote.artwork_version,
                url=quote.artwork_url,
                file_name=quote.artwork_file_name,
                status=quote.artwork_status,
                is_current=True,
                sent_at=quote.artwork_sent_at,
                approved_at=quote.artwork_approved_at,
                declined_at=quote.artwork_declined_at,
                customer_notes=quote.artwork_notes,
            )
        )
    versions.extend(archived)

    return ArtworkVersionList(
        versions=versions,
        total_versions=len(versions),
        current_version=quote.artwork_version,
    )
