"""
Quote and artwork notifications.

Each notifier renders a short e-mail, sends it through the injected
EmailService and records the attempt in NotificationLog. Notifiers report
failure in their return value; they do not raise.
"""
import html
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import detached_session
from app.models.notification import NotificationLog
from app.models.quote import Quote
from app.models.user import User
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)

INTERNAL_QUOTE_STATUS_CHANGE = "INTERNAL_QUOTE_STATUS_CHANGE"
INTERNAL_ARTWORK_RESPONSE = "INTERNAL_ARTWORK_RESPONSE"
CUSTOMER_QUOTE_SENT = "CUSTOMER_QUOTE_SENT"
CUSTOMER_ARTWORK_APPROVAL = "CUSTOMER_ARTWORK_APPROVAL"


def build_quote_url(access_token: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/quote/{access_token}"


def build_artwork_url(artwork_token: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/artwork/{artwork_token}"


def build_admin_quote_url(quote_id: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/admin/quotes/{quote_id}"


def _html(paragraphs, link_url: Optional[str] = None, link_label: Optional[str] = None) -> str:
    body = "".join(f"<p>{html.escape(p)}</p>" for p in paragraphs)
    if link_url:
        body += f'<p><a href="{html.escape(link_url)}">{html.escape(link_label or link_url)}</a></p>'
    return f"<html><body>{body}<p>{html.escape(settings.SITE_NAME)}</p></body></html>"


async def _deliver(
    db: AsyncSession,
    email_service: EmailService,
    *,
    notification_type: str,
    to: str,
    subject: str,
    body: str,
    html_body: str,
    context: Dict[str, Any],
) -> Dict[str, Any]:
    try:
        result = await email_service.send_email(to=to, subject=subject, body=body, html_body=html_body)
    except Exception as e:
        logger.error(f"Notification {notification_type} to {to} raised: {e}")
        result = {"success": False, "error": str(e)}

    log = NotificationLog(
        type=notification_type,
        channel="EMAIL",
        recipient=to,
        subject=subject,
        status="sent" if result.get("success") else "failed",
        error=result.get("error"),
        context=context,
    )
    try:
        async with detached_session(db) as session:
            session.add(log)
            await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Failed to record notification log: {e}")

    if not result.get("success"):
        logger.warning(
            "Notification not delivered",
            extra={"type": notification_type, "to": to, "error": result.get("error")},
        )
    return result


async def notify_quote_owner_status_change(
    db: AsyncSession,
    email_service: EmailService,
    quote: Quote,
    owner: Optional[User],
    previous_status: str,
    new_status: str,
) -> Dict[str, Any]:
    """Tell the quote owner a customer changed the quote status."""
    if owner is None or not owner.email:
        return {"success": True, "skipped": True}

    customer = quote.display_customer_name or "The customer"
    verb = new_status.lower()
    subject = f"Quote {quote.quote_number} {verb} by customer"
    lines = [
        f"Hi {owner.first_name or owner.full_name},",
        f"{customer} has {verb} quote {quote.quote_number}"
        + (f" ({quote.title})." if quote.title else "."),
        f"Status changed from {previous_status} to {new_status}.",
        f"Total: ${quote.total}",
    ]
    admin_url = build_admin_quote_url(quote.id)

    return await _deliver(
        db,
        email_service,
        notification_type=INTERNAL_QUOTE_STATUS_CHANGE,
        to=owner.email,
        subject=subject,
        body="\n\n".join(lines + [admin_url]),
        html_body=_html(lines, admin_url, "View quote"),
        context={
            "quoteId": quote.id,
            "quoteNumber": quote.quote_number,
            "previousStatus": previous_status,
            "newStatus": new_status,
        },
    )


async def notify_artwork_response(
    db: AsyncSession,
    email_service: EmailService,
    quote: Quote,
    owner: Optional[User],
    action: str,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """Tell the quote owner how the customer answered the artwork proof."""
    if owner is None or not owner.email:
        return {"success": True, "skipped": True}

    verb = "approved" if action == "approve" else "declined"
    customer = quote.display_customer_name or "The customer"
    subject = f"Artwork {verb} for quote {quote.quote_number}"
    lines = [
        f"{customer} has {verb} the artwork (version {quote.artwork_version}) for quote {quote.quote_number}.",
    ]
    if notes:
        lines.append(f"Customer notes: {notes}")
    admin_url = build_admin_quote_url(quote.id)

    return await _deliver(
        db,
        email_service,
        notification_type=INTERNAL_ARTWORK_RESPONSE,
        to=owner.email,
        subject=subject,
        body="\n\n".join(lines + [admin_url]),
        html_body=_html(lines, admin_url, "View quote"),
        context={
            "quoteId": quote.id,
            "quoteNumber": quote.quote_number,
            "action": action,
            "artworkVersion": quote.artwork_version,
        },
    )


async def notify_artwork_for_approval(
    db: AsyncSession,
    email_service: EmailService,
    quote: Quote,
    approval_url: str,
) -> Dict[str, Any]:
    """Send the customer a link to review the artwork proof."""
    recipient = quote.recipient_email
    if not recipient:
        return {"success": False, "error": "No customer email"}

    name = quote.display_customer_name or "there"
    subject = f"Artwork ready for your approval - Quote {quote.quote_number}"
    lines = [
        f"Hi {name},",
        f"The artwork proof for quote {quote.quote_number} is ready for your review.",
        "Please take a look and approve it or let us know what to change.",
    ]
    if settings.CONTACT_EMAIL:
        lines.append(f"Questions? Contact us at {settings.CONTACT_EMAIL}.")

    return await _deliver(
        db,
        email_service,
        notification_type=CUSTOMER_ARTWORK_APPROVAL,
        to=recipient,
        subject=subject,
        body="\n\n".join(lines + [approval_url]),
        html_body=_html(lines, approval_url, "Review artwork"),
        context={
            "quoteId": quote.id,
            "quoteNumber": quote.quote_number,
            "artworkVersion": quote.artwork_version,
        },
    )


async def send_quote_email(
    db: AsyncSession,
    email_service: EmailService,
    quote: Quote,
    quote_url: str,
) -> Dict[str, Any]:
    """Send the customer the quote with its review link."""
    recipient = quote.recipient_email
    if not recipient:
        return {"success": False, "error": "No customer email"}

    name = quote.display_customer_name or "there"
    subject = f"Your quote {quote.quote_number} from {settings.SITE_NAME}"
    lines = [
        f"Hi {name},",
        f"Your quote {quote.quote_number}" + (f" for {quote.title}" if quote.title else "") + " is ready.",
        f"Total: ${quote.total}",
    ]
    if quote.valid_until:
        lines.append(f"This quote is valid until {quote.valid_until:%B %d, %Y}.")
    lines.append("Use the link below to review and respond.")

    return await _deliver(
        db,
        email_service,
        notification_type=CUSTOMER_QUOTE_SENT,
        to=recipient,
        subject=subject,
        body="\n\n".join(lines + [quote_url]),
        html_body=_html(lines, quote_url, "View your quote"),
        context={"quoteId": quote.id, "quoteNumber": quote.quote_number},
    )
