# Services module
from app.services.email_service import EmailService, MockEmailService, get_email_service

__all__ = [
    "EmailService",
    "MockEmailService",
    "get_email_service",
]
