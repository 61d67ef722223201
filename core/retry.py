"""Backoff for transient Supabase and summariser HTTP failures.

Updates:
  v0.1.1 - 2026-10-03 - Honour Retry-After on 429/503 responses and log each retry.
  v0.1.0 - 2026-09-24 - Add async exponential backoff retry helper for httpx calls.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import httpx

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger("promptly.retry")

T = TypeVar("T")

_RETRYABLE_HTTP_STATUS_CODES = {408, 429}


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Attempt budget and backoff curve shared by the HTTP clients."""

    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 4.0
    jitter_fraction: float = 0.1

    def delay_for(self, attempt: int, *, retry_after: float | None = None) -> float:
        """Return the pause before the attempt following *attempt* (1-based)."""
        if retry_after is not None:
            return min(self.max_delay_seconds, max(0.0, retry_after))
        delay = min(self.max_delay_seconds, self.base_delay_seconds * (2 ** (attempt - 1)))
        if self.jitter_fraction <= 0:
            return delay
        return delay + delay * self.jitter_fraction * random.random()


DEFAULT_RETRY_POLICY = RetryPolicy()


def is_retryable_http_status(status_code: int) -> bool:
    """Return ``True`` for timeouts, rate limiting, and server-side failures."""
    return status_code in _RETRYABLE_HTTP_STATUS_CODES or 500 <= status_code < 600


def is_retryable_httpx_error(exc: Exception) -> bool:
    """Return ``True`` when *exc* is a transport failure or a retryable status."""
    if isinstance(exc, httpx.HTTPStatusError):
        return is_retryable_http_status(exc.response.status_code)
    return isinstance(exc, httpx.TransportError)


def _retry_after_seconds(exc: Exception) -> float | None:
    if not isinstance(exc, httpx.HTTPStatusError):
        return None
    header = exc.response.headers.get("Retry-After")
    if header is None:
        return None
    try:
        return float(header)
    except ValueError:
        # HTTP-date values fall back to the regular backoff curve.
        return None


async def async_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    should_retry: Callable[[Exception], bool] = is_retryable_httpx_error,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    description: str = "request",
) -> T:
    """Await *operation*, retrying transient failures according to *policy*.

    Raises:
      Exception: The last failure once the attempt budget is spent, or the
        first failure that *should_retry* rejects.
    """
    attempts = max(1, policy.max_attempts)
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= attempts or not should_retry(exc):
                raise
            delay = policy.delay_for(attempt, retry_after=_retry_after_seconds(exc))
            logger.warning(
                "Retrying %s after %s (attempt %d of %d, waiting %.2fs)",
                description,
                exc.__class__.__name__,
                attempt + 1,
                attempts,
                delay,
            )
            if delay > 0:
                await asyncio.sleep(delay)
            attempt += 1


__all__ = [
    "DEFAULT_RETRY_POLICY",
    "RetryPolicy",
    "async_retry",
    "is_retryable_http_status",
    "is_retryable_httpx_error",
]
