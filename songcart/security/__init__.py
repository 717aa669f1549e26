# Request guards

from .rate_limit import RateLimitDependency, cart_write_limit

__all__ = ["RateLimitDependency", "cart_write_limit"]
