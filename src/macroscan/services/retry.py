"""Exponential-backoff retry for calls to external services."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httpx

T = TypeVar("T")

_logger = logging.getLogger(__name__)

HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVER_ERROR = 500

_RETRYABLE_MARKERS = (
    "500",
    "502",
    "503",
    "504",
    "server error",
    "service unavailable",
    "429",
    "too many requests",
    "rate limit",
    "connection",
    "network",
    "timeout",
    "timed out",
)


def status_code_from_exception(exc: BaseException) -> int | None:
    """Extract an HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


def is_retryable_error(exc: BaseException) -> bool:
    """Return True for timeouts, connection failures, 5xx and rate limits."""
    if isinstance(exc, TimeoutError | ConnectionError):
        return True
    if isinstance(exc, httpx.TimeoutException | httpx.NetworkError):
        return True
    status_code = status_code_from_exception(exc)
    if status_code is not None:
        return (
            status_code == HTTP_TOO_MANY_REQUESTS or status_code >= HTTP_SERVER_ERROR
        )
    message = str(exc).lower()
    return any(marker in message for marker in _RETRYABLE_MARKERS)


@dataclass
class RetryPolicy:
    """Retries an async operation with capped exponential backoff."""

    max_attempts: int = 3
    initial_delay: float = 0.5
    max_delay: float = 5.0
    is_retryable: Callable[[BaseException], bool] = is_retryable_error
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def delay_for(self, retry_number: int) -> float:
        """Return the wait before retry ``retry_number`` (zero-based)."""
        return min(self.initial_delay * 2**retry_number, self.max_delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, Exception], None] | None = None,
    ) -> T:
        """Await ``operation`` until it succeeds or may no longer be retried."""
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as exc:
                attempt += 1
                if attempt >= self.max_attempts or not self.is_retryable(exc):
                    raise
                if on_retry is not None:
                    _notify(on_retry, attempt, exc)
                await self.sleep(self.delay_for(attempt - 1))


def _notify(
    on_retry: Callable[[int, Exception], None], attempt: int, exc: Exception
) -> None:
    try:
        on_retry(attempt, exc)
    except Exception:
        _logger.exception("Retry observer failed on attempt %s", attempt)
