"""
Admin Router

Combines the staff endpoints under /api/admin.
"""

from fastapi import APIRouter

from app.api.admin import auth, customers, quotes, artwork, analytics

admin_router = APIRouter(prefix="/api/admin")

admin_router.include_router(auth.router, prefix="/auth", tags=["auth"])
admin_router.include_router(customers.router, prefix="/customers", tags=["customers"])
admin_router.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
admin_router.include_router(artwork.router, prefix="/quotes", tags=["artwork"])
admin_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
