"""
Quote audit trail helpers.

Thin, typed wrappers over a single writer so every route records changes
the same way. Audit writes happen after the state change has committed
and never fail the request: errors are logged and the entry is dropped.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import detached_session
from app.models.quote_audit import QuoteAuditLog, QuoteAuditAction, AuditActorType
from app.models.user import User
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

NOTES_PREVIEW_CHARS = 100


@dataclass
class AuditActor:
    type: AuditActorType
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def admin(cls, user: User) -> "AuditActor":
        return cls(AuditActorType.ADMIN, str(user.id), user.full_name, user.email)

    @classmethod
    def customer(cls, email: Optional[str] = None) -> "AuditActor":
        return cls(AuditActorType.CUSTOMER, email=email)


SYSTEM_ACTOR = AuditActor(AuditActorType.SYSTEM)

# New status -> dedicated audit action; anything else is STATUS_CHANGED
_STATUS_ACTIONS = {
    "SENT": QuoteAuditAction.SENT_TO_CUSTOMER,
    "APPROVED": QuoteAuditAction.APPROVED_BY_CUSTOMER,
    "DECLINED": QuoteAuditAction.DECLINED_BY_CUSTOMER,
}


def _preview(notes: str) -> str:
    if len(notes) > NOTES_PREVIEW_CHARS:
        return notes[:NOTES_PREVIEW_CHARS] + "..."
    return notes


async def log_quote_audit(
    db: AsyncSession,
    *,
    quote_id: str,
    action: QuoteAuditAction,
    description: str,
    actor: AuditActor = SYSTEM_ACTOR,
    previous_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Append one audit entry. Never raises."""
    entry = QuoteAuditLog(
        quote_id=quote_id,
        action=action.value,
        description=description,
        actor_type=actor.type.value,
        actor_id=actor.id,
        actor_name=actor.name,
        actor_email=actor.email,
        previous_value=previous_value,
        new_value=new_value,
        extra=metadata,
    )
    try:
        async with detached_session(db) as session:
            session.add(entry)
            await session.commit()
    except SQLAlchemyError as e:
        logger.error(
            "Failed to log quote audit entry",
            extra={"quote_id": quote_id, "action": action.value, "error": str(e)},
        )


async def log_quote_created(db, quote, actor: AuditActor, quote_data: Dict[str, Any]) -> None:
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.CREATED,
        description=f"Quote {quote.quote_number} created",
        actor=actor,
        new_value=quote_data,
    )


async def log_quote_status_change(
    db: AsyncSession,
    quote,
    previous_status: str,
    new_status: str,
    actor: AuditActor,
) -> None:
    action = _STATUS_ACTIONS.get(new_status, QuoteAuditAction.STATUS_CHANGED)
    if actor.type == AuditActorType.CUSTOMER:
        actor_desc = "customer"
    else:
        actor_desc = actor.name or "system"

    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=action,
        description=f"Status changed from {previous_status} to {new_status} by {actor_desc}",
        actor=actor,
        previous_value={"status": previous_status},
        new_value={"status": new_status},
    )


async def log_quote_sent(db, quote, recipient_email: str, actor: AuditActor) -> None:
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.SENT_TO_CUSTOMER,
        description=f"Quote sent to {recipient_email}",
        actor=actor,
        metadata={"recipientEmail": recipient_email},
    )


async def log_quote_updated(
    db,
    quote,
    changes: List[str],
    actor: AuditActor,
    previous_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
) -> None:
    pricing_fields = {"subtotal", "discount", "tax", "shipping", "total"}
    action = QuoteAuditAction.UPDATED
    if changes and set(changes) <= pricing_fields:
        action = QuoteAuditAction.PRICING_UPDATED

    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=action,
        description=f"Quote updated: {', '.join(changes)}",
        actor=actor,
        previous_value=previous_value,
        new_value=new_value,
    )


async def log_quote_deleted(db, quote_id: str, quote_number: str, actor: AuditActor) -> None:
    await log_quote_audit(
        db,
        quote_id=quote_id,
        action=QuoteAuditAction.DELETED,
        description=f"Quote {quote_number} deleted",
        actor=actor,
    )


async def log_quote_approved_by_customer(db, quote, customer_email: str) -> None:
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.APPROVED_BY_CUSTOMER,
        description=f"Quote approved by customer ({customer_email})",
        actor=AuditActor.customer(customer_email),
        new_value={"approvedAt": utcnow().isoformat()},
    )


async def log_quote_declined_by_customer(
    db, quote, customer_email: str, notes: Optional[str] = None
) -> None:
    suffix = f': "{notes}"' if notes else ""
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.DECLINED_BY_CUSTOMER,
        description=f"Quote declined by customer ({customer_email}){suffix}",
        actor=AuditActor.customer(customer_email),
        new_value={"declinedAt": utcnow().isoformat(), "notes": notes},
    )


# Artwork approval cycle

async def log_artwork_uploaded(db, quote, actor: AuditActor) -> None:
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.ARTWORK_UPLOADED,
        description=f'Artwork "{quote.artwork_file_name}" uploaded (version {quote.artwork_version})',
        actor=actor,
        new_value={
            "artworkFileName": quote.artwork_file_name,
            "artworkVersion": quote.artwork_version,
            "artworkUrl": quote.artwork_url,
        },
    )


async def log_artwork_updated(
    db,
    quote,
    previous_file_name: Optional[str],
    previous_url: Optional[str],
    actor: AuditActor,
) -> None:
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.ARTWORK_UPDATED,
        description=f'Artwork updated to version {quote.artwork_version}: "{quote.artwork_file_name}"',
        actor=actor,
        previous_value={"artworkFileName": previous_file_name, "artworkUrl": previous_url},
        new_value={
            "artworkFileName": quote.artwork_file_name,
            "artworkVersion": quote.artwork_version,
            "artworkUrl": quote.artwork_url,
        },
    )


async def log_artwork_sent_to_customer(db, quote, recipient_email: str, actor: AuditActor) -> None:
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.ARTWORK_SENT_TO_CUSTOMER,
        description=f"Artwork sent to {recipient_email} for approval",
        actor=actor,
        metadata={
            "recipientEmail": recipient_email,
            "artworkFileName": quote.artwork_file_name or "artwork",
        },
    )


async def log_artwork_removed(db, quote, actor: AuditActor) -> None:
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.ARTWORK_REMOVED,
        description="Artwork removed from quote",
        actor=actor,
    )


async def log_artwork_approved_by_customer(
    db, quote, customer_email: str, notes: Optional[str] = None
) -> None:
    description = "Artwork approved by customer"
    if notes:
        description = f'Artwork approved by customer with notes: "{_preview(notes)}"'
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.ARTWORK_APPROVED_BY_CUSTOMER,
        description=description,
        actor=AuditActor.customer(customer_email),
        new_value={"approved": True, "notes": notes},
    )


async def log_artwork_declined_by_customer(
    db, quote, customer_email: str, notes: Optional[str] = None
) -> None:
    description = "Artwork declined by customer"
    if notes:
        description = f'Artwork declined by customer: "{_preview(notes)}"'
    await log_quote_audit(
        db,
        quote_id=quote.id,
        action=QuoteAuditAction.ARTWORK_DECLINED_BY_CUSTOMER,
        description=description,
        actor=AuditActor.customer(customer_email),
        new_value={"approved": False, "notes": notes},
    )


async def get_quote_audit_logs(db: AsyncSession, quote_id: str) -> List[QuoteAuditLog]:
    """Audit entries for a quote, newest first."""
    result = await db.execute(
        select(QuoteAuditLog)
        .where(QuoteAuditLog.quote_id == quote_id)
        .order_by(QuoteAuditLog.created_at.desc())
    )
    return list(result.scalars().all())
