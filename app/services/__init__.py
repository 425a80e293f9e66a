# app/services/__init__.py
"""
Business logic services.
"""

from app.services.analytics_store import AnalyticsStore
from app.services.reddit_analytics import RedditAnalyticsService, build_analytics_service
from app.services.result_cache import ResultCache
from app.services.sentiment import SentimentScorer

__all__ = [
    "AnalyticsStore",
    "RedditAnalyticsService",
    "ResultCache",
    "SentimentScorer",
    "build_analytics_service",
]
