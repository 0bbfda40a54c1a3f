"""
Middleware modules for the quotes API.

Provides request processing middleware for:
- Correlation ID tracking for request tracing
"""

from .correlation import CorrelationIdMiddleware, correlation_id_ctx, request_id_ctx

__all__ = [
    "CorrelationIdMiddleware",
    "correlation_id_ctx",
    "request_id_ctx",
]
