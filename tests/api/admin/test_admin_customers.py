"""
Tests for the staff customers API (/api/admin/customers).
"""
import pytest
from sqlalchemy import select

from app.models.analytics import EntityActivity
from factories import SentQuoteFactory


CUSTOMERS_PREFIX = "/api/admin/customers"

NEW_CUSTOMER = {
    "contactName": "Ann Whitfield",
    "companyName": "Harbor Brewing",
    "email": "Ann@HarborBrewing.example",
    "phone": "555-0142",
}


class TestCreateCustomer:

    @pytest.mark.asyncio
    async def test_create_customer(self, authenticated_client, test_user, test_db):
        response = await authenticated_client.post(CUSTOMERS_PREFIX, json=NEW_CUSTOMER)

        assert response.status_code == 201
        data = response.json()
        assert data["contactName"] == "Ann Whitfield"
        assert data["companyName"] == "Harbor Brewing"
        assert data["email"] == "ann@harborbrewing.example"
        assert data["isActive"] is True

        activity = (await test_db.execute(
            select(EntityActivity).where(EntityActivity.entity_type == "CUSTOMER")
        )).scalars().one()
        assert activity.entity_id == str(data["id"])
        assert activity.activity_type == "CREATED"
        assert activity.user_id == test_user.id

    @pytest.mark.asyncio
    async def test_minimal_customer(self, authenticated_client):
        response = await authenticated_client.post(
            CUSTOMERS_PREFIX, json={"contactName": "Ann", "email": "ann@example.com"}
        )

        assert response.status_code == 201
        assert response.json()["companyName"] is None

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, authenticated_client, test_customer):
        response = await authenticated_client.post(
            CUSTOMERS_PREFIX,
            json={"contactName": "Someone Else", "email": "DANA@reyesroofing.example"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "A customer with this email already exists"
        assert response.json()["code"] == "CONFLICT"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"email": "ann@example.com"},
        {"contactName": "Ann"},
        {"contactName": "", "email": "ann@example.com"},
        {"contactName": "Ann", "email": "not-an-email"},
    ])
    async def test_invalid_customer_rejected(self, authenticated_client, payload):
        response = await authenticated_client.post(CUSTOMERS_PREFIX, json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client, test_db):
        response = await client.post(CUSTOMERS_PREFIX, json=NEW_CUSTOMER)

        assert response.status_code == 401


class TestListAndGetCustomers:

    @pytest.mark.asyncio
    async def test_list_and_search(self, authenticated_client, test_customer):
        await authenticated_client.post(CUSTOMERS_PREFIX, json=NEW_CUSTOMER)

        everyone = await authenticated_client.get(CUSTOMERS_PREFIX)
        harbor = await authenticated_client.get(CUSTOMERS_PREFIX, params={"search": "harbor"})

        assert everyone.json()["total"] == 2
        assert harbor.json()["total"] == 1
        assert harbor.json()["items"][0]["contactName"] == "Ann Whitfield"

    @pytest.mark.asyncio
    async def test_list_paginates(self, authenticated_client):
        for i in range(3):
            await authenticated_client.post(
                CUSTOMERS_PREFIX, json={"contactName": f"Buyer {i}", "email": f"buyer{i}@example.com"}
            )

        response = await authenticated_client.get(CUSTOMERS_PREFIX, params={"page": 2, "page_size": 2})

        data = response.json()
        assert data["total"] == 3
        assert len(data["items"]) == 1
        assert data["page"] == 2

    @pytest.mark.asyncio
    async def test_get_customer(self, authenticated_client, test_customer):
        response = await authenticated_client.get(f"{CUSTOMERS_PREFIX}/{test_customer.id}")

        assert response.status_code == 200
        assert response.json()["contactName"] == "Dana Reyes"

    @pytest.mark.asyncio
    async def test_get_missing_customer(self, authenticated_client):
        response = await authenticated_client.get(f"{CUSTOMERS_PREFIX}/99999")

        assert response.status_code == 404
        assert response.json()["error"] == "Customer not found"


class TestLookupCustomer:

    @pytest.mark.asyncio
    async def test_found_ignoring_case(self, authenticated_client, test_customer):
        response = await authenticated_client.get(
            f"{CUSTOMERS_PREFIX}/lookup", params={"email": "  Dana@ReyesRoofing.example "}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["found"] is True
        assert data["customer"]["id"] == test_customer.id

    @pytest.mark.asyncio
    async def test_not_found(self, authenticated_client, test_db):
        response = await authenticated_client.get(
            f"{CUSTOMERS_PREFIX}/lookup", params={"email": "nobody@example.com"}
        )

        assert response.status_code == 200
        assert response.json() == {"found": False, "customer": None}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{}, {"email": "   "}])
    async def test_email_required(self, authenticated_client, params):
        response = await authenticated_client.get(f"{CUSTOMERS_PREFIX}/lookup", params=params)

        assert response.status_code == 400
        assert response.json()["error"] == "Email is required"


class TestUpdateCustomer:

    @pytest.mark.asyncio
    async def test_update_fields(self, authenticated_client, test_customer, test_db):
        response = await authenticated_client.patch(
            f"{CUSTOMERS_PREFIX}/{test_customer.id}",
            json={"companyName": "Reyes Roofing & Solar", "isActive": False},
        )

        assert response.status_code == 200
        assert response.json()["companyName"] == "Reyes Roofing & Solar"
        assert response.json()["isActive"] is False
        assert response.json()["contactName"] == "Dana Reyes"

        activity = (await test_db.execute(
            select(EntityActivity).where(EntityActivity.activity_type == "UPDATED")
        )).scalars().one()
        assert activity.old_value == {"company_name": "Reyes Roofing", "is_active": True}

    @pytest.mark.asyncio
    async def test_email_taken_by_another_customer(self, authenticated_client, test_customer):
        other = (await authenticated_client.post(CUSTOMERS_PREFIX, json=NEW_CUSTOMER)).json()

        response = await authenticated_client.patch(
            f"{CUSTOMERS_PREFIX}/{other['id']}", json={"email": "dana@reyesroofing.example"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_keeping_own_email_is_allowed(self, authenticated_client, test_customer):
        response = await authenticated_client.patch(
            f"{CUSTOMERS_PREFIX}/{test_customer.id}", json={"email": "dana@reyesroofing.example"}
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_null_contact_name_rejected(self, authenticated_client, test_customer):
        response = await authenticated_client.patch(
            f"{CUSTOMERS_PREFIX}/{test_customer.id}", json={"contactName": None}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_missing_customer(self, authenticated_client):
        response = await authenticated_client.patch(
            f"{CUSTOMERS_PREFIX}/99999", json={"phone": "555-0000"}
        )

        assert response.status_code == 404


class TestQuotesForNewCustomer:

    @pytest.mark.asyncio
    async def test_quote_for_created_customer(self, authenticated_client, email_service, test_db):
        customer = (await authenticated_client.post(CUSTOMERS_PREFIX, json=NEW_CUSTOMER)).json()

        created = await authenticated_client.post(
            "/api/admin/quotes",
            json={
                "customerId": customer["id"],
                "lineItems": [{"name": "Pint glass", "quantity": 48, "unitPrice": "4.25"}],
            },
        )
        assert created.status_code == 201
        quote_id = created.json()["id"]

        sent = await authenticated_client.post(f"/api/admin/quotes/{quote_id}/send")
        assert sent.status_code == 200
        assert email_service._sent_emails[0]["to"] == "ann@harborbrewing.example"

        token = sent.json()["quote"]["accessToken"]
        view = (await authenticated_client.get(f"/api/quote/{token}")).json()["data"]
        assert view["customerName"] == "Ann Whitfield"
        assert view["customerCompany"] == "Harbor Brewing"

    @pytest.mark.asyncio
    async def test_renamed_customer_shows_on_quote(self, authenticated_client, make_quote):
        customer = (await authenticated_client.post(CUSTOMERS_PREFIX, json=NEW_CUSTOMER)).json()

        quote = await make_quote(SentQuoteFactory, customer_id=customer["id"])
        await authenticated_client.patch(
            f"{CUSTOMERS_PREFIX}/{customer['id']}", json={"contactName": "Ann Whitfield-Cole"}
        )

        view = (await authenticated_client.get(f"/api/quote/{quote.access_token}")).json()["data"]
        assert view["customerName"] == "Ann Whitfield-Cole"
