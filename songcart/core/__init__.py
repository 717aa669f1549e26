# Core modules

from .config import Settings, get_settings
from .errors import AppError
from .rate_limit import RateLimiter
from .retry import RetryConfig, with_retry

__all__ = ["Settings", "get_settings", "AppError", "RateLimiter", "RetryConfig", "with_retry"]
