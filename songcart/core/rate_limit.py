"""
Fixed-window rate limiter

Counts are kept per process and are lost on restart. Deployments running
more than one instance need a shared RateLimitStore (e.g. Redis) for the
limits to hold across instances.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    """Request count for one key in the current window"""
    count: int
    reset_at: float


@dataclass
class RateLimitResult:
    """Outcome of a rate limit check"""
    allowed: bool
    remaining: int
    reset_at: float


class RateLimitStore:
    """Storage interface for rate limit entries"""

    def get(self, key: str) -> Optional[RateLimitEntry]:
        raise NotImplementedError

    def put(self, key: str, entry: RateLimitEntry) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def expire(self, now: float) -> int:
        """Drop entries whose window ended before ``now``"""
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local entry storage"""

    def __init__(self):
        self.entries: dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self.entries.get(key)

    def put(self, key: str, entry: RateLimitEntry) -> None:
        self.entries[key] = entry

    def delete(self, key: str) -> None:
        self.entries.pop(key, None)

    def expire(self, now: float) -> int:
        expired = [key for key, entry in self.entries.items() if now > entry.reset_at]
        for key in expired:
            del self.entries[key]
        return len(expired)

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)


class RateLimiter:
    """
    Fixed-window counter per key.

    Expired entries are swept at most once every ``sweep_interval``
    seconds, from inside ``check``, so memory stays bounded by the number
    of keys seen within roughly one window plus one sweep interval.
    """

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ):
        self.store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval
        self._lock = threading.Lock()

    def check(self, key: str, limit: int, window_seconds: float) -> RateLimitResult:
        """Count a request for ``key`` and report whether it is allowed"""
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)

            entry = self.store.get(key)
            if entry is None or now > entry.reset_at:
                entry = RateLimitEntry(count=1, reset_at=now + window_seconds)
                self.store.put(key, entry)
                return RateLimitResult(
                    allowed=True,
                    remaining=max(limit - 1, 0),
                    reset_at=entry.reset_at,
                )

            if entry.count >= limit:
                logger.info(f"Rate limit exceeded for {key}")
                return RateLimitResult(allowed=False, remaining=0, reset_at=entry.reset_at)

            entry.count += 1
            self.store.put(key, entry)
            return RateLimitResult(
                allowed=True,
                remaining=limit - entry.count,
                reset_at=entry.reset_at,
            )

    def now(self) -> float:
        return self._clock()

    def reset(self) -> None:
        """Forget all counts"""
        with self._lock:
            self.store.clear()

    def _maybe_sweep(self, now: float) -> None:
        if now < self._next_sweep:
            return
        removed = self.store.expire(now)
        self._next_sweep = now + self._sweep_interval
        if removed:
            logger.debug(f"Swept {removed} expired rate limit entries")
