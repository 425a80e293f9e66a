"""
Resilience patterns for upstream calls.

Provides the shared rate limiter, backoff policies and a per-attempt timeout
helper used by the retrying fetcher.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Rate Limiter
# -----------------------------------------------------------------------------


@dataclass
class RateLimiter:
    """
    Sliding-window rate limiter with a sustained-rate cap.

    Admits at most `max_requests` per `window_seconds` and spaces consecutive
    admissions by at least `1 / max_per_second`. One instance is shared by
    every fetcher in the process. Callers over the limit wait; they never fail.

    Admission runs under an asyncio.Lock, so waiters are served in FIFO order
    and the window state is never read and written concurrently.

    Usage:
        limiter = RateLimiter(max_requests=10, window_seconds=60, max_per_second=1)

        async with limiter:
            await call_api()
    """

    max_requests: int
    window_seconds: float
    max_per_second: float | None = None
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    _admitted: deque = field(default_factory=deque, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self):
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

    @property
    def min_interval(self) -> float:
        if not self.max_per_second:
            return 0.0
        return 1.0 / self.max_per_second

    def _wait_time(self, now: float) -> float:
        """Seconds until the next admission is allowed (0 = admit now)."""
        while self._admitted and now - self._admitted[0] >= self.window_seconds:
            self._admitted.popleft()

        wait = 0.0
        if len(self._admitted) >= self.max_requests:
            wait = self.window_seconds - (now - self._admitted[0])
        if self._admitted and self.min_interval:
            wait = max(wait, self.min_interval - (now - self._admitted[-1]))
        return wait

    async def acquire(self) -> None:
        """Wait for an admission slot."""
        async with self._lock:
            while True:
                now = self.clock()
                wait = self._wait_time(now)
                if wait <= 0:
                    self._admitted.append(now)
                    return
                logger.debug(f"Rate limit reached, waiting {wait:.2f}s")
                await self.sleep(wait)

    @property
    def in_window(self) -> int:
        """Admissions currently counted against the window."""
        now = self.clock()
        return sum(1 for t in self._admitted if now - t < self.window_seconds)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


# -----------------------------------------------------------------------------
# Backoff
# -----------------------------------------------------------------------------


class BackoffPolicy(str, Enum):
    """Delay growth between retry attempts."""

    LINEAR = "linear"  # base * attempt: 1s, 2s, 3s
    EXPONENTIAL = "exponential"  # base * 2^(attempt-1): 1s, 2s, 4s


def backoff_delay(policy: BackoffPolicy, attempt: int, base_seconds: float = 1.0) -> float:
    """
    Delay to wait after failed attempt number `attempt` (1-based).

    Args:
        policy: Linear or exponential growth
        attempt: The attempt that just failed, starting at 1
        base_seconds: Delay unit
    """
    if attempt < 1:
        raise ValueError("attempt is 1-based")
    if policy == BackoffPolicy.EXPONENTIAL:
        return base_seconds * (2 ** (attempt - 1))
    return base_seconds * attempt


# -----------------------------------------------------------------------------
# Timeout Helper
# -----------------------------------------------------------------------------


class AttemptTimeoutError(Exception):
    """Raised when a single upstream attempt exceeds its timeout."""

    pass


async def with_timeout(coro, timeout_seconds: float, error_message: str = "Operation timed out"):
    """
    Execute a coroutine with a timeout.

    Args:
        coro: The coroutine to execute
        timeout_seconds: Maximum time to wait
        error_message: Error message if timeout occurs

    Raises:
        AttemptTimeoutError: If the operation times out
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout_seconds)
    except TimeoutError:
        raise AttemptTimeoutError(f"{error_message} (timeout: {timeout_seconds}s)")
