"""
Tests for the storefront funnel beacon (/api/analytics/funnel).
"""
import pytest
from sqlalchemy import select

from app.models.analytics import QuoteFunnelEvent


BEACON_URL = "/api/analytics/funnel"


class TestFunnelBeacon:

    @pytest.mark.asyncio
    async def test_records_event(self, client, test_db):
        response = await client.post(
            BEACON_URL,
            json={
                "stage": "ADDED_ITEMS",
                "sessionId": "sess-42",
                "productIds": ["polo-01", "cap-07"],
                "metadata": {"source": "catalog"},
            },
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}

        event = (await test_db.execute(select(QuoteFunnelEvent))).scalars().one()
        assert event.stage == "ADDED_ITEMS"
        assert event.session_id == "sess-42"
        assert event.product_ids == ["polo-01", "cap-07"]
        assert event.extra == {"source": "catalog"}

    @pytest.mark.asyncio
    async def test_recorded_stage_is_counted(self, authenticated_client):
        for stage in ("VIEWED_PRODUCTS", "STARTED_QUOTE", "STARTED_QUOTE", "SUBMITTED_INFO"):
            response = await authenticated_client.post(BEACON_URL, json={"stage": stage})
            assert response.status_code == 200

        metrics = (await authenticated_client.get("/api/admin/analytics/funnel")).json()

        assert metrics["viewedProducts"] == 1
        assert metrics["startedQuote"] == 2
        assert metrics["addedItems"] == 0
        assert metrics["submittedInfo"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"stage": "CHECKED_OUT"}, {"stage": "started_quote"}, {}])
    async def test_invalid_stage(self, client, test_db, payload):
        response = await client.post(BEACON_URL, json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid stage"
        assert (await test_db.execute(select(QuoteFunnelEvent))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_needs_no_login(self, client, test_db):
        response = await client.post(BEACON_URL, json={"stage": "VIEWED_PRODUCTS"})

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_rate_limited(self, client, test_db, monkeypatch):
        from app.security.rate_limiter import public_rate_limiter

        monkeypatch.setattr(public_rate_limiter, "max_requests", 1)

        await client.post(BEACON_URL, json={"stage": "VIEWED_PRODUCTS"})
        response = await client.post(BEACON_URL, json={"stage": "VIEWED_PRODUCTS"})

        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMITED"
