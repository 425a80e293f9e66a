# app/services/reddit_sources/aggregator.py
"""
Concurrent fan-out over independent upstream sources.

All requests run at once and the aggregator waits for every one of them to
settle. A failing slot never cancels its siblings and never raises; the
returned map always has exactly the caller's slot names.
"""

import asyncio
import logging

from app.services.reddit_sources.base import (
    ErrorKind,
    Failure,
    FetchOutcome,
    FetchRequest,
    validate_url,
)
from app.services.reddit_sources.fetcher import RetryingFetcher

logger = logging.getLogger(__name__)


class FanOutAggregator:
    """Join-all fan-out over a RetryingFetcher."""

    def __init__(self, fetcher: RetryingFetcher):
        self.fetcher = fetcher

    async def aggregate(self, requests: dict[str, FetchRequest]) -> dict[str, FetchOutcome]:
        """
        Fetch every named request concurrently.

        Args:
            requests: Slot name -> request

        Returns:
            Slot name -> outcome, same key set as `requests`

        Raises:
            InvalidInputError: If any URL is malformed (checked before any request starts)
        """
        for request in requests.values():
            validate_url(request.url)

        names = list(requests)
        results = await asyncio.gather(
            *(self.fetcher.fetch_request(requests[name]) for name in names),
            return_exceptions=True,
        )

        outcomes: dict[str, FetchOutcome] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(
                    f"Source '{name}' raised unexpectedly: {result}",
                    extra={"event": "fanout_slot_error", "source": name},
                )
                result = Failure(ErrorKind.UNEXPECTED, str(result))
            outcomes[name] = result

        failed = [name for name, outcome in outcomes.items() if not outcome.ok]
        if failed:
            logger.info(
                f"Fan-out finished with {len(failed)}/{len(names)} failed source(s): {', '.join(failed)}",
                extra={"event": "fanout_partial"},
            )
        return outcomes
