"""
FastAPI dependencies

Shared services are built once by the app factory and kept on
``app.state``; these functions hand them to route handlers.
"""

from typing import Awaitable, Callable, Optional

from fastapi import Depends, Header, Request

from .config import Settings
from .errors import ConfigurationError
from .rate_limit import RateLimiter
from .retry import QueryResult, RetryConfig
from ..database.carts import CartManager, CartRegistry
from ..services.apple_music import AppleMusicClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_cart_registry(request: Request) -> CartRegistry:
    return request.app.state.cart_registry


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_music_client(request: Request) -> AppleMusicClient:
    return request.app.state.music_client


def get_client_id(x_client_id: Optional[str] = Header(None)) -> str:
    """Extract client ID from header"""
    return (x_client_id or "").strip() or "anonymous"


def get_cart_manager(
    client_id: str = Depends(get_client_id),
    registry: CartRegistry = Depends(get_cart_registry),
) -> CartManager:
    return registry.get(client_id)


def get_retry_config(settings: Settings = Depends(get_app_settings)) -> RetryConfig:
    return RetryConfig(
        max_attempts=settings.retry_max_attempts,
        initial_delay=settings.retry_initial_delay,
        use_backoff=settings.retry_use_backoff,
    )


def get_tag_query(request: Request) -> Callable[[], Awaitable[QueryResult]]:
    """Question-set tag query, 503 when no source is wired in"""
    query = request.app.state.tag_query
    if query is None:
        raise ConfigurationError("Question-set tag source not configured")
    return query
