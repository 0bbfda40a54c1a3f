"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation.
"""

from .user import UserFactory, EditorUserFactory, SuperAdminUserFactory
from .customer import CustomerFactory
from .quote import (
    LineItemFactory,
    QuoteFactory,
    SentQuoteFactory,
    ExpiredQuoteFactory,
    ArtworkSharedQuoteFactory,
)

__all__ = [
    "UserFactory",
    "EditorUserFactory",
    "SuperAdminUserFactory",
    "CustomerFactory",
    # Quotes
    "LineItemFactory",
    "QuoteFactory",
    "SentQuoteFactory",
    "ExpiredQuoteFactory",
    "ArtworkSharedQuoteFactory",
]
