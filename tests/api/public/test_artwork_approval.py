"""
Tests for the customer artwork link (/api/artwork/{artworkToken}).
"""
import pytest
from sqlalchemy import select

from app.models.quote_audit import QuoteAuditLog
from app.utils.clock import utcnow
from factories import ArtworkSharedQuoteFactory


ARTWORK_PREFIX = "/api/artwork"


async def _audit_actions(test_db, quote_id):
    result = await test_db.execute(
        select(QuoteAuditLog.action).where(QuoteAuditLog.quote_id == quote_id)
    )
    return sorted(result.scalars().all())


class TestGetArtwork:
    """GET /api/artwork/{artworkToken}"""

    @pytest.mark.asyncio
    async def test_returns_proof_and_quote_summary(self, client, make_quote):
        quote = await make_quote(ArtworkSharedQuoteFactory, customer_name="Sam Lee")

        response = await client.get(f"{ARTWORK_PREFIX}/{quote.artwork_token}")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        data = body["data"]
        assert data["quoteNumber"] == quote.quote_number
        assert data["customerName"] == "Sam Lee"
        assert data["artworkUrl"] == "https://cdn.example.com/proofs/logo-v1.png"
        assert data["artworkFileName"] == "logo-v1.png"
        assert data["artworkVersion"] == 1
        assert data["responseState"] == "pending"
        assert data["quoteState"] == "pending"
        assert data["quoteStatus"] == "ARTWORK_PENDING"
        assert data["lineItems"] == [
            {"name": "Embroidered Polo", "description": "Left chest logo", "quantity": 10}
        ]
        assert "id" not in data

    @pytest.mark.asyncio
    async def test_customer_name_falls_back_to_company(self, client, make_quote):
        quote = await make_quote(
            ArtworkSharedQuoteFactory, customer_name=None, customer_company="Acme Signs"
        )

        response = await client.get(f"{ARTWORK_PREFIX}/{quote.artwork_token}")

        assert response.json()["data"]["customerName"] == "Acme Signs"

    @pytest.mark.asyncio
    async def test_customer_name_defaults(self, client, make_quote):
        quote = await make_quote(
            ArtworkSharedQuoteFactory, customer_name=None, customer_company=None
        )

        response = await client.get(f"{ARTWORK_PREFIX}/{quote.artwork_token}")

        assert response.json()["data"]["customerName"] == "Customer"

    @pytest.mark.asyncio
    async def test_unknown_token_returns_404(self, client, test_db):
        response = await client.get(f"{ARTWORK_PREFIX}/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Artwork not found or link expired"

    @pytest.mark.asyncio
    async def test_unshared_artwork_is_not_visible(self, client, make_quote):
        quote = await make_quote(ArtworkSharedQuoteFactory, artwork_sent_at=None)

        response = await client.get(f"{ARTWORK_PREFIX}/{quote.artwork_token}")

        assert response.status_code == 400
        assert response.json()["code"] == "NOT_SHARED"

    @pytest.mark.asyncio
    async def test_shows_previous_response(self, client, make_quote):
        answered = utcnow()
        quote = await make_quote(
            ArtworkSharedQuoteFactory,
            status="ARTWORK_DECLINED",
            artwork_declined_at=answered,
            artwork_notes="Logo should be bigger",
        )

        response = await client.get(f"{ARTWORK_PREFIX}/{quote.artwork_token}")

        data = response.json()["data"]
        assert data["responseState"] == "declined"
        assert data["respondedAt"] is not None
        assert data["notes"] == "Logo should be bigger"


class TestRespondToArtwork:
    """POST /api/artwork/{artworkToken} with type=artwork (the default)."""

    @pytest.mark.asyncio
    async def test_approve_artwork(self, client, make_quote, test_db):
        quote = await make_quote(ArtworkSharedQuoteFactory)

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}", json={"action": "approve"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["message"] == "Thank you! Your artwork has been approved."
        assert body["data"]["action"] == "approve"
        assert body["data"]["type"] == "artwork"
        assert body["data"]["respondedAt"] is not None

        await test_db.refresh(quote)
        assert quote.status == "ARTWORK_APPROVED"
        assert quote.artwork_approved_at is not None
        assert quote.artwork_declined_at is None
        # Quote-level approval is a separate step
        assert quote.approved_at is None

    @pytest.mark.asyncio
    async def test_decline_artwork_with_notes(self, client, make_quote, test_db):
        quote = await make_quote(ArtworkSharedQuoteFactory)

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "decline", "notes": "Please use the navy logo"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == (
            "Thank you for your feedback. We will revise the artwork and send you a new version."
        )

        await test_db.refresh(quote)
        assert quote.status == "ARTWORK_DECLINED"
        assert quote.artwork_declined_at is not None
        assert quote.artwork_notes == "Please use the navy logo"

    @pytest.mark.asyncio
    async def test_second_artwork_response_is_rejected(self, client, make_quote, test_db):
        quote = await make_quote(ArtworkSharedQuoteFactory)
        url = f"{ARTWORK_PREFIX}/{quote.artwork_token}"

        await client.post(url, json={"action": "approve"})
        response = await client.post(url, json={"action": "decline", "notes": "changed my mind"})

        assert response.status_code == 400
        assert response.json()["code"] == "ALREADY_RESPONDED"

        await test_db.refresh(quote)
        assert quote.status == "ARTWORK_APPROVED"
        assert quote.artwork_declined_at is None
        assert quote.artwork_notes is None

    @pytest.mark.asyncio
    async def test_unshared_artwork_cannot_be_answered(self, client, make_quote, test_db):
        quote = await make_quote(ArtworkSharedQuoteFactory, artwork_sent_at=None)

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}", json={"action": "approve"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "NOT_SHARED"
        await test_db.refresh(quote)
        assert quote.artwork_approved_at is None

    @pytest.mark.asyncio
    async def test_notes_over_limit_rejected(self, client, make_quote, test_db):
        quote = await make_quote(ArtworkSharedQuoteFactory)

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "decline", "notes": "x" * 2001},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        await test_db.refresh(quote)
        assert quote.artwork_declined_at is None

    @pytest.mark.asyncio
    async def test_notes_at_limit_accepted(self, client, make_quote):
        quote = await make_quote(ArtworkSharedQuoteFactory)

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "decline", "notes": "x" * 2000},
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_invalid_action_rejected(self, client, make_quote):
        quote = await make_quote(ArtworkSharedQuoteFactory)

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}", json={"action": "maybe"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_token_returns_404(self, client, test_db):
        response = await client.post(f"{ARTWORK_PREFIX}/missing", json={"action": "approve"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"action": "maybe"}, {"notes": "x" * 2001}, None])
    async def test_link_checked_before_body(self, client, make_quote, test_db, payload):
        unshared = await make_quote(ArtworkSharedQuoteFactory, artwork_sent_at=None)

        missing = await client.post(f"{ARTWORK_PREFIX}/missing", json=payload)
        not_shared = await client.post(
            f"{ARTWORK_PREFIX}/{unshared.artwork_token}", json=payload
        )

        assert missing.status_code == 404
        assert missing.json()["error"] == "Artwork not found or link expired"
        assert not_shared.status_code == 400
        assert not_shared.json()["code"] == "NOT_SHARED"

    @pytest.mark.asyncio
    async def test_malformed_json_rejected(self, client, make_quote):
        quote = await make_quote(ArtworkSharedQuoteFactory)

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_audit_trail(self, client, make_quote, test_db):
        quote = await make_quote(ArtworkSharedQuoteFactory, customer_email="art@example.com")

        await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "decline", "notes": "n" * 150},
        )

        assert await _audit_actions(test_db, quote.id) == [
            "ARTWORK_DECLINED_BY_CUSTOMER",
            "STATUS_CHANGED",
        ]
        declined = (await test_db.execute(
            select(QuoteAuditLog).where(QuoteAuditLog.action == "ARTWORK_DECLINED_BY_CUSTOMER")
        )).scalars().one()
        assert declined.actor_type == "CUSTOMER"
        assert declined.actor_email == "art@example.com"
        assert declined.description == f'Artwork declined by customer: "{"n" * 100}..."'

    @pytest.mark.asyncio
    async def test_owner_told_about_artwork_response(self, client, make_quote, test_user, email_service):
        quote = await make_quote(ArtworkSharedQuoteFactory, owner_id=test_user.id)

        await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "decline", "notes": "Wrong colour"},
        )

        assert len(email_service._sent_emails) == 1
        email = email_service._sent_emails[0]
        assert email["to"] == test_user.email
        assert email["subject"] == f"Artwork declined for quote {quote.quote_number}"
        assert "Customer notes: Wrong colour" in email["body"]


class TestRespondToQuoteViaArtwork:
    """POST /api/artwork/{artworkToken} with type=quote."""

    @pytest.mark.asyncio
    async def test_requires_approved_artwork(self, client, make_quote, test_db):
        quote = await make_quote(ArtworkSharedQuoteFactory)

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "approve", "type": "quote"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "ARTWORK_NOT_APPROVED"
        await test_db.refresh(quote)
        assert quote.approved_at is None

    @pytest.mark.asyncio
    async def test_declined_artwork_blocks_quote_approval(self, client, make_quote):
        quote = await make_quote(
            ArtworkSharedQuoteFactory, status="ARTWORK_DECLINED", artwork_declined_at=utcnow()
        )

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "approve", "type": "quote"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "ARTWORK_NOT_APPROVED"

    @pytest.mark.asyncio
    async def test_approve_quote_after_artwork(self, client, make_quote, test_db):
        quote = await make_quote(ArtworkSharedQuoteFactory)
        url = f"{ARTWORK_PREFIX}/{quote.artwork_token}"

        await client.post(url, json={"action": "approve"})
        response = await client.post(url, json={"action": "approve", "type": "quote"})

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["type"] == "quote"
        assert body["message"] == (
            "Thank you! Your quote has been approved. We will begin processing your order."
        )

        await test_db.refresh(quote)
        assert quote.status == "APPROVED"
        assert quote.approved_at is not None
        assert quote.artwork_approved_at is not None

    @pytest.mark.asyncio
    async def test_decline_quote_after_artwork(self, client, make_quote, test_db):
        quote = await make_quote(
            ArtworkSharedQuoteFactory, status="ARTWORK_APPROVED", artwork_approved_at=utcnow()
        )

        response = await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "decline", "type": "quote", "notes": "Budget cut"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == (
            "Thank you for your feedback. Please contact us to discuss your requirements."
        )
        await test_db.refresh(quote)
        assert quote.status == "DECLINED"
        assert quote.declined_at is not None

    @pytest.mark.asyncio
    async def test_quote_answered_only_once(self, client, make_quote, test_db):
        quote = await make_quote(
            ArtworkSharedQuoteFactory, status="ARTWORK_APPROVED", artwork_approved_at=utcnow()
        )
        url = f"{ARTWORK_PREFIX}/{quote.artwork_token}"

        await client.post(url, json={"action": "approve", "type": "quote"})
        response = await client.post(url, json={"action": "decline", "type": "quote"})

        assert response.status_code == 400
        assert response.json()["code"] == "ALREADY_RESPONDED"
        await test_db.refresh(quote)
        assert quote.status == "APPROVED"
        assert quote.declined_at is None

    @pytest.mark.asyncio
    async def test_quote_response_audit_and_owner_email(self, client, make_quote, test_user, email_service, test_db):
        quote = await make_quote(
            ArtworkSharedQuoteFactory,
            status="ARTWORK_APPROVED",
            artwork_approved_at=utcnow(),
            owner_id=test_user.id,
        )

        await client.post(
            f"{ARTWORK_PREFIX}/{quote.artwork_token}",
            json={"action": "approve", "type": "quote"},
        )

        # Dedicated entry plus the status transition, which maps to the same action
        assert await _audit_actions(test_db, quote.id) == [
            "APPROVED_BY_CUSTOMER",
            "APPROVED_BY_CUSTOMER",
        ]
        assert [e["subject"] for e in email_service._sent_emails] == [
            f"Quote {quote.quote_number} approved by customer"
        ]
