"""
Rate limit guard for write routes

Rejections are returned immediately as 429 and never retried server-side.
"""

import math
import logging
from typing import Optional

from fastapi import Depends, HTTPException

from ..core.config import Settings
from ..core.dependencies import get_app_settings, get_client_id, get_rate_limiter
from ..core.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class RateLimitDependency:
    """
    FastAPI dependency enforcing a fixed-window limit per client.

    Limit and window come from settings unless given explicitly.
    """

    def __init__(
        self,
        scope: str,
        limit: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        """
        Args:
            scope: Prefix for the limiter key, e.g. "cart"
            limit: Requests allowed per window
            window_seconds: Window length
        """
        self.scope = scope
        self.limit = limit
        self.window_seconds = window_seconds

    async def __call__(
        self,
        client_id: str = Depends(get_client_id),
        limiter: RateLimiter = Depends(get_rate_limiter),
        settings: Settings = Depends(get_app_settings),
    ) -> int:
        """Count the request; returns the remaining allowance"""
        limit = self.limit if self.limit is not None else settings.cart_rate_limit
        window = self.window_seconds if self.window_seconds is not None else settings.cart_rate_window_seconds
        key = f"{self.scope}:{client_id}"

        result = limiter.check(key, limit, window)
        if not result.allowed:
            logger.warning(f"Rate limit hit: key={key} limit={limit}/{window}s")
            retry_after = max(1, math.ceil(result.reset_at - limiter.now()))
            raise HTTPException(
                status_code=429,
                detail="Too many requests. Please wait a moment and try again",
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                },
            )
        return result.remaining


cart_write_limit = RateLimitDependency(scope="cart")
