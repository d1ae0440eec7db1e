"""
Resilience patterns for market data calls.

This module provides:
1. Retry with exponential backoff and jitter, bounded attempts and a delay cap
2. Request coalescing - concurrent requests for the same key share one call

Usage:
    from asxwatch.services.resilience import BackoffPolicy, RequestCoalescer, retry_async

    policy = BackoffPolicy(max_attempts=3, base_delay=1.0, max_delay=30.0)
    quote = await retry_async(lambda: client.fetch_quote("CBA"), policy)

    coalescer = RequestCoalescer()
    company = await coalescer.execute("company:CBA", lambda: client.fetch_company("CBA"))
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from asxwatch.core.exceptions import TransientError
from asxwatch.core.logging import get_logger

logger = get_logger("resilience")

T = TypeVar("T")


# =============================================================================
# Retry with Exponential Backoff
# =============================================================================


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Bounded exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (including initial)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap
        exponential_base: Base for exponential growth
        jitter: Random jitter factor (0.5 = ±50% of delay)
        retry_on: Exception types that trigger retry
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: float = 0.0
    retry_on: tuple[type[Exception], ...] = (TransientError,)

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry that follows failed attempt number ``attempt``."""
        delay = min(
            self.base_delay * (self.exponential_base ** (attempt - 1)),
            self.max_delay,
        )
        if self.jitter > 0:
            delay *= 1 + (random.random() - 0.5) * 2 * self.jitter
        return min(delay, self.max_delay)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    policy: BackoffPolicy = BackoffPolicy(),
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """
    Retry an async function with exponential backoff.

    Exceptions outside ``policy.retry_on`` propagate immediately. When every
    attempt fails the last exception is re-raised unchanged.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await func()
        except policy.retry_on as e:
            if attempt >= policy.max_attempts:
                logger.warning(f"Retry exhausted after {policy.max_attempts} attempts: {e}")
                raise

            delay = policy.delay_for(attempt)
            logger.debug(
                f"Retry {attempt}/{policy.max_attempts} after {delay:.2f}s: {e}"
            )
            if on_retry:
                on_retry(attempt, e)
            await asyncio.sleep(delay)

    raise RuntimeError("retry_async requires max_attempts >= 1")


# =============================================================================
# Request Coalescing
# =============================================================================


@dataclass
class _PendingRequest:
    """Tracks an in-flight request that others can wait on."""

    future: asyncio.Future[Any]
    created_at: float = field(default_factory=time.monotonic)


class RequestCoalescer:
    """
    Coalesces concurrent requests for the same resource.

    When multiple callers request the same key simultaneously, only one
    actual request is made and all callers receive the same result. A caller
    that joins a request which then fails gets the same exception.
    """

    def __init__(self, max_wait: float = 30.0):
        """
        Args:
            max_wait: Maximum seconds to wait for coalesced request
        """
        self._pending: dict[str, _PendingRequest] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._max_wait = max_wait

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def _join(self, pending: _PendingRequest) -> Any:
        return await asyncio.wait_for(
            asyncio.shield(pending.future),
            timeout=self._max_wait,
        )

    async def execute(self, key: str, func: Callable[[], Awaitable[T]]) -> T:
        """
        Execute function with request coalescing.

        Args:
            key: Unique identifier for the request
            func: Async callable to execute

        Returns:
            Result from func (either executed or coalesced)
        """
        pending = self._pending.get(key)
        if pending is not None:
            try:
                return await self._join(pending)
            except asyncio.TimeoutError:
                logger.warning(f"Coalesce timeout for {key}, proceeding independently")

        async with self._get_lock(key):
            pending = self._pending.get(key)
            if pending is not None:
                try:
                    return await self._join(pending)
                except asyncio.TimeoutError:
                    logger.warning(f"Coalesce timeout for {key}, proceeding independently")

            loop = asyncio.get_running_loop()
            future: asyncio.Future[Any] = loop.create_future()
            self._pending[key] = _PendingRequest(future=future)

            try:
                result = await func()
                if not future.done():
                    future.set_result(result)
                return result
            except Exception as e:
                if not future.done():
                    future.set_exception(e)
                    # Mark retrieved so an unjoined failure isn't reported as unhandled
                    future.exception()
                raise
            finally:
                self._pending.pop(key, None)

    def get_pending_count(self) -> int:
        """Return number of pending coalesced requests."""
        return len(self._pending)
