# app/services/reddit_sources/fetcher.py
"""
Rate-limited, retrying JSON fetcher for Reddit endpoints.

Every request passes through the shared RateLimiter before each attempt.
Timeouts, transport errors, HTTP 429 and HTTP 5xx are retried with the
request's backoff policy; any other 4xx and undecodable bodies are final.
The fetcher always returns a FetchOutcome. The only exception it raises is
InvalidInputError for a malformed URL, before touching the network.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt

from app.constants import FetchDefaults
from app.services.reddit_sources.base import (
    ErrorKind,
    Failure,
    FetchOutcome,
    FetchRequest,
    Success,
    validate_url,
)
from app.services.reddit_sources.errors import InvalidInputError
from app.services.resilience import (
    AttemptTimeoutError,
    BackoffPolicy,
    RateLimiter,
    backoff_delay,
    with_timeout,
)

logger = logging.getLogger(__name__)


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class RetryingFetcher:
    """
    Fetch JSON from Reddit with rate limiting, timeouts and bounded retry.

    The httpx client may be injected (tests pass one built on
    httpx.MockTransport); otherwise the fetcher owns and closes its own.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        client: httpx.AsyncClient | None = None,
        user_agent: str = FetchDefaults.USER_AGENT,
        backoff_base_seconds: float = FetchDefaults.BACKOFF_BASE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            limiter: Process-wide admission limiter shared with other fetchers
            client: Optional pre-built httpx client
            user_agent: User-Agent header value
            backoff_base_seconds: Delay unit for both backoff policies
            sleep: Awaitable used to wait between attempts
        """
        self.limiter = limiter
        self.backoff_base_seconds = backoff_base_seconds
        self._sleep = sleep
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "application/json",
        }
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(headers=self._headers, follow_redirects=True)

    async def fetch(
        self,
        url: str,
        max_attempts: int = FetchDefaults.MAX_ATTEMPTS,
        timeout: float = FetchDefaults.ATTEMPT_TIMEOUT_SECONDS,
        backoff: BackoffPolicy = BackoffPolicy.LINEAR,
    ) -> FetchOutcome:
        """Fetch a single URL. See fetch_request."""
        return await self.fetch_request(
            FetchRequest(url=url, max_attempts=max_attempts, timeout=timeout, backoff=backoff)
        )

    async def fetch_request(self, request: FetchRequest) -> FetchOutcome:
        """
        Run one logical GET to completion.

        Returns:
            Success with the decoded JSON, or Failure describing the last attempt

        Raises:
            InvalidInputError: If the URL or attempt count is malformed
        """
        url = validate_url(request.url)
        if request.max_attempts < 1:
            raise InvalidInputError("max_attempts must be at least 1")

        start_time = time.time()
        attempts = 0

        async def attempt_once() -> tuple[FetchOutcome, bool]:
            nonlocal attempts
            attempts += 1
            await self.limiter.acquire()
            return await self._attempt(url, request.timeout, attempts)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(request.max_attempts),
            wait=lambda state: backoff_delay(request.backoff, state.attempt_number, self.backoff_base_seconds),
            retry=retry_if_result(lambda result: result[1]),
            sleep=self._sleep,
            before_sleep=lambda state: self._log_retry(url, request, state),
            retry_error_callback=lambda state: state.outcome.result(),
        )
        outcome, _ = await retrying(attempt_once)

        if isinstance(outcome, Success):
            logger.debug(
                f"Fetched {url} on attempt {attempts} in {int((time.time() - start_time) * 1000)}ms",
                extra={"event": "fetch_success", "url": url, "attempt": attempts},
            )
            return outcome

        logger.error(
            f"Fetch failed for {url} after {outcome.attempts} attempt(s): {outcome.last_error}",
            extra={
                "event": "fetch_failed",
                "url": url,
                "attempt": outcome.attempts,
                "status_code": outcome.status_code,
                "error_kind": outcome.error_kind.value,
            },
        )
        return outcome

    def _log_retry(self, url: str, request: FetchRequest, state: RetryCallState) -> None:
        failure, _ = state.outcome.result()
        delay = state.next_action.sleep
        logger.warning(
            f"Fetch attempt {state.attempt_number}/{request.max_attempts} failed for {url}: "
            f"{failure.last_error}. Retrying in {delay:.1f}s...",
            extra={
                "event": "fetch_retry",
                "url": url,
                "attempt": state.attempt_number,
                "max_attempts": request.max_attempts,
                "delay_seconds": delay,
                "error_kind": failure.error_kind.value,
            },
        )

    async def _attempt(self, url: str, timeout: float, attempt: int) -> tuple[FetchOutcome, bool]:
        """Make one HTTP attempt. Returns the outcome and whether a retry may help."""
        try:
            response = await with_timeout(
                self.client.get(url, headers=self._headers, timeout=timeout),
                timeout_seconds=timeout,
                error_message=f"GET {url} timed out",
            )
        except (AttemptTimeoutError, httpx.TimeoutException) as e:
            return Failure(ErrorKind.TIMEOUT, str(e) or "timed out", attempts=attempt), True
        except httpx.TransportError as e:
            return Failure(ErrorKind.TRANSPORT, str(e) or type(e).__name__, attempts=attempt), True
        except Exception as e:
            logger.exception(f"Unexpected error fetching {url}")
            return Failure(ErrorKind.UNEXPECTED, str(e), attempts=attempt), False

        status_code = response.status_code
        if status_code == 404:
            return Failure(ErrorKind.NOT_FOUND, "HTTP 404", status_code=404, attempts=attempt), False
        if status_code >= 400:
            failure = Failure(
                ErrorKind.HTTP_STATUS,
                f"HTTP {status_code}",
                status_code=status_code,
                attempts=attempt,
            )
            return failure, _is_retryable_status(status_code)

        try:
            return Success(response.json()), False
        except ValueError as e:
            return (
                Failure(ErrorKind.INVALID_PAYLOAD, f"Response is not JSON: {e}", status_code=status_code, attempts=attempt),
                False,
            )

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "RetryingFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
