"""
Tests for quote and artwork notifications.
"""
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from app.models.notification import NotificationLog
from app.services.email_service import MockEmailService
from app.services.notifications import (
    build_artwork_url,
    build_quote_url,
    notify_artwork_for_approval,
    notify_artwork_response,
    notify_quote_owner_status_change,
    send_quote_email,
)
from factories import QuoteFactory, ArtworkSharedQuoteFactory, SentQuoteFactory


async def _logs(test_db):
    return (await test_db.execute(select(NotificationLog))).scalars().all()


class TestLinks:

    def test_public_links_use_public_base_url(self):
        with patch("app.services.notifications.settings") as mock_settings:
            mock_settings.PUBLIC_BASE_URL = "https://shop.example.com/"
            assert build_quote_url("abc") == "https://shop.example.com/quote/abc"
            assert build_artwork_url("def") == "https://shop.example.com/artwork/def"


class TestOwnerNotifications:

    @pytest.mark.asyncio
    async def test_status_change(self, test_db, make_quote, test_user):
        quote = await make_quote(SentQuoteFactory, customer_name="Riley Chen", title="Banners")
        service = MockEmailService()

        result = await notify_quote_owner_status_change(
            test_db, service, quote, test_user, "SENT", "DECLINED"
        )

        assert result["success"] is True
        email = service._sent_emails[0]
        assert email["subject"] == f"Quote {quote.quote_number} declined by customer"
        assert f"Riley Chen has declined quote {quote.quote_number} (Banners)." in email["body"]
        assert f"/admin/quotes/{quote.id}" in email["body"]

        log = (await _logs(test_db))[0]
        assert log.type == "INTERNAL_QUOTE_STATUS_CHANGE"
        assert log.recipient == test_user.email
        assert log.context["newStatus"] == "DECLINED"

    @pytest.mark.asyncio
    async def test_no_owner_is_skipped(self, test_db, make_quote):
        quote = await make_quote(SentQuoteFactory)
        service = MockEmailService()

        result = await notify_quote_owner_status_change(test_db, service, quote, None, "SENT", "APPROVED")

        assert result == {"success": True, "skipped": True}
        assert service._sent_emails == []
        assert await _logs(test_db) == []

    @pytest.mark.asyncio
    async def test_artwork_response(self, test_db, make_quote, test_user):
        quote = await make_quote(ArtworkSharedQuoteFactory, artwork_version=3)
        service = MockEmailService()

        await notify_artwork_response(test_db, service, quote, test_user, "approve")

        email = service._sent_emails[0]
        assert email["subject"] == f"Artwork approved for quote {quote.quote_number}"
        assert "(version 3)" in email["body"]
        assert "Customer notes" not in email["body"]

    @pytest.mark.asyncio
    async def test_email_service_exception_is_recorded(self, test_db, make_quote, test_user):
        quote = await make_quote(SentQuoteFactory)
        service = MockEmailService()
        service.send_email = AsyncMock(side_effect=RuntimeError("smtp exploded"))

        result = await notify_quote_owner_status_change(
            test_db, service, quote, test_user, "SENT", "APPROVED"
        )

        assert result["success"] is False
        log = (await _logs(test_db))[0]
        assert log.status == "failed"
        assert log.error == "smtp exploded"


class TestCustomerNotifications:

    @pytest.mark.asyncio
    async def test_quote_email(self, test_db, make_quote):
        quote = await make_quote(QuoteFactory, customer_email="buyer@example.com")
        service = MockEmailService()

        result = await send_quote_email(test_db, service, quote, "https://shop.example.com/quote/t")

        assert result["success"] is True
        email = service._sent_emails[0]
        assert email["to"] == "buyer@example.com"
        assert "This quote is valid until" in email["body"]
        assert email["html_body"].count('href="https://shop.example.com/quote/t"') == 1
        assert (await _logs(test_db))[0].type == "CUSTOMER_QUOTE_SENT"

    @pytest.mark.asyncio
    async def test_quote_email_without_recipient(self, test_db, make_quote):
        quote = await make_quote(QuoteFactory, customer_email=None)
        service = MockEmailService()

        result = await send_quote_email(test_db, service, quote, "https://x/quote/t")

        assert result["success"] is False
        assert service._sent_emails == []

    @pytest.mark.asyncio
    async def test_artwork_email_contact_line(self, test_db, make_quote):
        quote = await make_quote(ArtworkSharedQuoteFactory)
        service = MockEmailService()

        with patch("app.services.notifications.settings") as mock_settings:
            mock_settings.SITE_NAME = "Logoz Custom"
            mock_settings.CONTACT_EMAIL = None
            await notify_artwork_for_approval(test_db, service, quote, "https://x/artwork/t")
            mock_settings.CONTACT_EMAIL = "help@example.com"
            await notify_artwork_for_approval(test_db, service, quote, "https://x/artwork/t")

        first, second = service._sent_emails
        assert "Contact us" not in first["body"]
        assert "Questions? Contact us at help@example.com." in second["body"]

    @pytest.mark.asyncio
    async def test_customer_text_is_escaped_in_html(self, test_db, make_quote):
        quote = await make_quote(QuoteFactory, customer_name="<b>Mallory</b>")
        service = MockEmailService()

        await send_quote_email(test_db, service, quote, "https://x/quote/t")

        html_body = service._sent_emails[0]["html_body"]
        assert "<b>Mallory</b>" not in html_body
        assert "&lt;b&gt;Mallory&lt;/b&gt;" in html_body
