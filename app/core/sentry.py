"""
Sentry error tracking integration.

Only active when SENTRY_DSN is configured. Customer access tokens travel in
URL paths, so they are scrubbed from events before anything leaves the
process.
"""

import logging
import re
from typing import Optional, Dict, Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

_sentry_initialized = False

# /api/quote/<token>, /api/artwork/<token>
_TOKEN_PATH = re.compile(r"(/api/(?:quote|artwork)/)[^/?#]+")


def init_sentry() -> None:
    """Initialize Sentry SDK. Called during application startup in main.py."""
    global _sentry_initialized

    from app.config import settings

    if not settings.SENTRY_DSN:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        release=settings.VERSION,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(
                level=logging.WARNING,
                event_level=logging.ERROR,
            ),
        ],
        before_send=filter_sensitive_data,
        send_default_pii=False,
        attach_stacktrace=True,
    )

    _sentry_initialized = True
    logger.info(f"Sentry initialized for {settings.ENVIRONMENT} environment")


def scrub_token_path(url: str) -> str:
    """Replace customer access tokens in an API path or URL."""
    return _TOKEN_PATH.sub(r"\1[Filtered]", url)


def filter_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Filter sensitive data before sending to Sentry.

    Removes:
    - Authorization and cookie headers
    - Passwords and tokens in request bodies
    - Quote/artwork access tokens in URLs
    """
    request = event.get("request")
    if not request:
        return event

    headers = request.get("headers")
    if isinstance(headers, dict):
        for header in ("authorization", "cookie", "x-api-key"):
            if header in headers:
                headers[header] = "[Filtered]"

    data = request.get("data")
    if isinstance(data, dict):
        for field in ("password", "token", "accessToken", "artworkToken", "secret"):
            if field in data:
                data[field] = "[Filtered]"

    if isinstance(request.get("url"), str):
        request["url"] = scrub_token_path(request["url"])

    return event


def capture_exception(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """Capture an exception with extra context. Returns the event id if sent."""
    if not _sentry_initialized:
        return None

    with sentry_sdk.push_scope() as scope:
        for key, value in (context or {}).items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(exception)
