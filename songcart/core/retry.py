"""
Retry policy for async operations

Linear backoff by default: attempt N waits ``initial_delay * N`` before
attempt N + 1.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from .errors import AppError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = {429, 502, 503, 504}
RETRYABLE_DB_CODES = {"PGRST301", "53300", "57P03"}
RETRYABLE_MESSAGES = ("fetch failed", "network request failed", "econnrefused", "etimedout")


def default_retry_predicate(error: BaseException) -> bool:
    """Only errors explicitly marked retryable are retried"""
    return isinstance(error, AppError) and error.is_retryable


def is_retryable_error(error: Any) -> bool:
    """Broader classification used for raw query and transport errors"""
    if isinstance(error, AppError):
        return error.is_retryable

    if isinstance(error, httpx.TransportError):
        return True

    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES

    if isinstance(error, dict):
        if error.get("code") in RETRYABLE_DB_CODES:
            return True
        if error.get("status") in RETRYABLE_STATUS_CODES:
            return True
        message = str(error.get("message", ""))
    else:
        message = str(error)

    message = message.lower()
    return any(fragment in message for fragment in RETRYABLE_MESSAGES)


@dataclass
class RetryConfig:
    """Retry configuration"""
    max_attempts: int = 3
    initial_delay: float = 1.0  # seconds
    use_backoff: bool = True
    retry_predicate: Callable[[BaseException], bool] = default_retry_predicate
    on_retry: Optional[Callable[[BaseException, int], None]] = None

    def delay_for(self, attempt: int) -> float:
        """Delay after a failed attempt (1-based)"""
        return self.initial_delay * attempt if self.use_backoff else self.initial_delay


@dataclass
class QueryResult:
    """Structured query outcome, ``error`` is None on success"""
    data: Any = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    cancelled: Optional[Callable[[], bool]] = None,
) -> T:
    """
    Run ``operation`` and retry it on retryable failures.

    Args:
        operation: Zero-argument coroutine function
        config: Retry configuration (defaults apply when omitted)
        cancelled: Checked before every retry; when it returns True the
            last error is raised instead of attempting again

    Raises:
        The last error, unchanged, once attempts are exhausted or the
        error is not retryable.
    """
    config = config or RetryConfig()
    max_attempts = max(1, config.max_attempts)
    attempt = 1

    while True:
        try:
            return await operation()
        except Exception as error:
            if attempt >= max_attempts or not config.retry_predicate(error):
                raise

            logger.warning(f"Attempt {attempt}/{max_attempts} failed, retrying: {error}")
            if config.on_retry:
                config.on_retry(error, attempt)

            await asyncio.sleep(config.delay_for(attempt))

            if cancelled and cancelled():
                logger.info("Retry cancelled")
                raise

            attempt += 1


class _RetryableQueryError(Exception):
    def __init__(self, error: Any):
        super().__init__(str(error))
        self.error = error


async def with_query_retry(
    query: Callable[[], Awaitable[QueryResult]],
    config: Optional[RetryConfig] = None,
) -> QueryResult:
    """
    Retry a query that reports failure through ``QueryResult.error``.

    Never raises: the final outcome, success or not, comes back as a
    QueryResult.
    """
    base = config or RetryConfig()

    async def attempt() -> QueryResult:
        try:
            result = await query()
        except Exception as exc:
            if is_retryable_error(exc):
                raise _RetryableQueryError(exc)
            return QueryResult(error=exc)
        if result.error is not None and is_retryable_error(result.error):
            raise _RetryableQueryError(result.error)
        return result

    on_retry = None
    if base.on_retry:
        on_retry = lambda exc, n: base.on_retry(exc.error, n)  # noqa: E731

    query_config = RetryConfig(
        max_attempts=base.max_attempts,
        initial_delay=base.initial_delay,
        use_backoff=base.use_backoff,
        retry_predicate=lambda exc: isinstance(exc, _RetryableQueryError),
        on_retry=on_retry,
    )

    try:
        return await with_retry(attempt, query_config)
    except _RetryableQueryError as exc:
        return QueryResult(error=exc.error)
