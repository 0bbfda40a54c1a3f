"""
Rate Limiting Module

Per-IP fixed-window limits for the unauthenticated surfaces: admin login
and the customer approval endpoints.
"""

import time
from collections import defaultdict
from typing import Dict
from dataclasses import dataclass, field
from fastapi import Request
import logging

from app.config import settings
from app.exceptions import RateLimitError
from app.services.activity_tracker import get_client_ip

logger = logging.getLogger(__name__)

# Expired windows are swept once the table holds this many keys
SWEEP_THRESHOLD = 1000


@dataclass
class RateLimitWindow:
    """Track requests within a time window."""
    count: int = 0
    window_start: float = field(default_factory=time.time)


class RateLimiter:
    """
    In-memory rate limiter keyed by an arbitrary string (client IP).

    Counts are per process; behind several workers each one limits
    independently.
    """

    def __init__(self, name: str, max_requests: int, window_seconds: int):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: Dict[str, RateLimitWindow] = defaultdict(RateLimitWindow)
        self._last_sweep = time.time()

    def check(self, key: str) -> None:
        """Count one request for key, raising RateLimitError over the limit."""
        now = time.time()
        if len(self._windows) >= SWEEP_THRESHOLD and now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        window = self._windows[key]

        # Reset window if expired
        if now - window.window_start >= self.window_seconds:
            window.count = 0
            window.window_start = now

        if window.count >= self.max_requests:
            retry_after = max(1, int(self.window_seconds - (now - window.window_start)))
            logger.warning(
                f"Rate limit exceeded: {self.name}",
                extra={"key": key, "retry_after": retry_after},
            )
            raise RateLimitError(retry_after=retry_after)

        window.count += 1

    def _sweep(self, now: float) -> None:
        """Drop every window that has already expired."""
        expired = [
            key for key, window in self._windows.items()
            if now - window.window_start >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now
        if expired:
            logger.debug(f"Rate limiter {self.name} swept {len(expired)} expired windows")

    def remaining(self, key: str) -> int:
        window = self._windows.get(key)
        if window is None or time.time() - window.window_start >= self.window_seconds:
            return self.max_requests
        return max(0, self.max_requests - window.count)

    def reset(self, key: str | None = None) -> None:
        """Forget one key, or every key (for testing or admin override)."""
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)


# Global rate limiter instances
login_rate_limiter = RateLimiter(
    "login",
    max_requests=settings.LOGIN_RATE_LIMIT,
    window_seconds=settings.LOGIN_RATE_WINDOW_SECONDS,
)
public_rate_limiter = RateLimiter(
    "public",
    max_requests=settings.PUBLIC_RATE_LIMIT,
    window_seconds=settings.PUBLIC_RATE_WINDOW_SECONDS,
)


async def rate_limit_login(request: Request) -> None:
    """Dependency: limit login attempts per client IP."""
    login_rate_limiter.check(get_client_ip(request))


async def rate_limit_public(request: Request) -> None:
    """Dependency: limit customer approval submissions per client IP."""
    public_rate_limiter.check(get_client_ip(request))
