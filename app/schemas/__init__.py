"""
Pydantic schemas for API request/response validation.
"""

from app.schemas.analytics import (
    AnalyticsResponse,
    ErrorResponse,
    InsightResponse,
    MetricsSummary,
    PostAnalytics,
    PostAnalyticsRequest,
    SentimentSummary,
    SubredditAnalytics,
    UserAnalytics,
)

__all__ = [
    "AnalyticsResponse",
    "ErrorResponse",
    "InsightResponse",
    "MetricsSummary",
    "PostAnalytics",
    "PostAnalyticsRequest",
    "SentimentSummary",
    "SubredditAnalytics",
    "UserAnalytics",
]
