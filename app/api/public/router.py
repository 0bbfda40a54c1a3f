"""
Public Router

Mounts the token-gated customer endpoints and the storefront funnel beacon
under /api.
"""

from fastapi import APIRouter

from app.api.public import quote_approval, artwork_approval, funnel

public_router = APIRouter(prefix="/api")

public_router.include_router(quote_approval.router, prefix="/quote", tags=["Quote Approval"])
public_router.include_router(artwork_approval.router, prefix="/artwork", tags=["Artwork Approval"])
public_router.include_router(funnel.router, prefix="/analytics", tags=["Analytics"])
