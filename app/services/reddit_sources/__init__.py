# app/services/reddit_sources/__init__.py
"""
Upstream Reddit data sources for the analytics pipeline.

This package provides the retrying fetcher, the concurrent fan-out
aggregator, and one typed adapter per upstream JSON shape. Every fetch
resolves to a FetchOutcome (Success or Failure) instead of raising.
"""

from app.services.reddit_sources.aggregator import FanOutAggregator
from app.services.reddit_sources.base import (
    ErrorKind,
    Failure,
    FetchOutcome,
    FetchRequest,
    Success,
)
from app.services.reddit_sources.errors import (
    AnalyticsError,
    InvalidInputError,
    NotFoundError,
    PartialSourceFailure,
    StoreError,
    UpstreamError,
)
from app.services.reddit_sources.fetcher import RetryingFetcher

__all__ = [
    "AnalyticsError",
    "ErrorKind",
    "Failure",
    "FanOutAggregator",
    "FetchOutcome",
    "FetchRequest",
    "InvalidInputError",
    "NotFoundError",
    "PartialSourceFailure",
    "RetryingFetcher",
    "StoreError",
    "Success",
    "UpstreamError",
]
