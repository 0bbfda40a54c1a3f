# Security module
from app.security.rate_limiter import (
    RateLimiter,
    rate_limit_login,
    rate_limit_public,
    login_rate_limiter,
    public_rate_limiter,
)

__all__ = [
    "RateLimiter",
    "rate_limit_login",
    "rate_limit_public",
    "login_rate_limiter",
    "public_rate_limiter",
]
