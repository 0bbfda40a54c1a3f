from app.schemas.common import CamelModel, ApiResponse, ApiMessageResponse
from app.schemas.auth import (
    UserResponse,
    Token,
    TokenData,
    LoginRequest,
)
from app.schemas.quote import (
    QuoteCreate,
    QuoteUpdate,
    QuoteResponse,
    QuoteListResponse,
    PublicQuoteView,
)
from app.schemas.artwork import (
    PublicArtworkView,
    ArtworkDetails,
    ArtworkVersionList,
)
from app.schemas.audit import QuoteAuditLogOut, FunnelMetrics

__all__ = [
    "CamelModel",
    "ApiResponse",
    "ApiMessageResponse",
    "UserResponse",
    "Token",
    "TokenData",
    "LoginRequest",
    "QuoteCreate",
    "QuoteUpdate",
    "QuoteResponse",
    "QuoteListResponse",
    "PublicQuoteView",
    "PublicArtworkView",
    "ArtworkDetails",
    "ArtworkVersionList",
    "QuoteAuditLogOut",
    "FunnelMetrics",
]
