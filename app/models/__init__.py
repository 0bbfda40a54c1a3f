from app.models.customer import Customer
from app.models.user import User, UserRole
from app.models.quote import Quote, QuoteStatus
from app.models.artwork_version import ArtworkVersion
from app.models.quote_audit import QuoteAuditLog, QuoteAuditAction, AuditActorType
from app.models.analytics import EntityActivity, QuoteFunnelEvent, QuoteFunnelStage
from app.models.notification import NotificationLog

__all__ = [
    "Customer",
    "User",
    "UserRole",
    "Quote",
    "QuoteStatus",
    "ArtworkVersion",
    "QuoteAuditLog",
    "QuoteAuditAction",
    "AuditActorType",
    "EntityActivity",
    "QuoteFunnelEvent",
    "QuoteFunnelStage",
    "NotificationLog",
]
