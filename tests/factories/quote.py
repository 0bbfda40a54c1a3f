"""
Quote test factories.

Quote rows are built from plain dicts so tests can tweak any column before
adding them to the session:

    quote = Quote(**SentQuoteFactory(customer_email="buyer@example.com"))
"""

import secrets
from datetime import timedelta

import factory
from faker import Faker

from app.utils.clock import utcnow

fake = Faker()


class LineItemFactory(factory.Factory):
    class Meta:
        model = dict

    name = factory.LazyFunction(lambda: f"{fake.color_name()} {fake.random_element(['T-Shirt', 'Hoodie', 'Cap', 'Mug'])}")
    description = factory.LazyFunction(lambda: fake.sentence(nb_words=6))
    quantity = factory.LazyFunction(lambda: fake.random_int(min=1, max=200))
    unit_price = factory.LazyFunction(lambda: float(fake.random_int(min=100, max=5000)) / 100)


class QuoteFactory(factory.Factory):
    """Draft quote with a denormalised customer and no tokens."""

    class Meta:
        model = dict

    quote_number = factory.Sequence(lambda n: f"Q2026-{n + 1:04d}")
    status = "DRAFT"
    title = factory.LazyFunction(lambda: fake.catch_phrase())
    customer_name = factory.LazyFunction(fake.name)
    customer_company = factory.LazyFunction(fake.company)
    customer_email = factory.LazyFunction(lambda: fake.email().lower())
    line_items = factory.LazyFunction(lambda: [
        {"name": "Embroidered Polo", "description": "Left chest logo", "quantity": 10,
         "unit_price": 25.0, "total": 250.0},
    ])
    subtotal = 250
    discount = 0
    tax = 20
    shipping = 15
    total = 285
    valid_until = factory.LazyFunction(lambda: utcnow() + timedelta(days=30))
    notes = factory.LazyFunction(lambda: fake.sentence())
    internal_notes = "Margin check done"


class SentQuoteFactory(QuoteFactory):
    """Quote that has been sent and awaits the customer."""

    status = "SENT"
    access_token = factory.LazyFunction(lambda: secrets.token_hex(32))
    sent_at = factory.LazyFunction(utcnow)


class ExpiredQuoteFactory(SentQuoteFactory):
    valid_until = factory.LazyFunction(lambda: utcnow() - timedelta(days=1))


class ArtworkSharedQuoteFactory(QuoteFactory):
    """Quote whose artwork proof has been shared for approval."""

    status = "ARTWORK_PENDING"
    artwork_required = True
    artwork_token = factory.LazyFunction(lambda: secrets.token_hex(32))
    artwork_url = "https://cdn.example.com/proofs/logo-v1.png"
    artwork_file_name = "logo-v1.png"
    artwork_version = 1
    artwork_sent_at = factory.LazyFunction(utcnow)
