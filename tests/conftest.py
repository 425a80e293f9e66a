# tests/conftest.py
"""
Pytest configuration and fixtures.
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

# Set test environment
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Fixed "now" for analytics tests: 2024-01-01T12:00:00Z
NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
NOW_TS = NOW.timestamp()


class RedditPayloads:
    """Builders for the upstream Reddit JSON shapes."""

    @staticmethod
    def listing(children: list[dict]) -> dict:
        return {"kind": "Listing", "data": {"children": children}}

    @staticmethod
    def comment(body: str, score: int = 1, item_id: str = "c1", subreddit: str = "python", created_utc: float = NOW_TS) -> dict:
        return {
            "kind": "t1",
            "data": {"id": item_id, "body": body, "score": score, "subreddit": subreddit, "created_utc": created_utc},
        }

    @staticmethod
    def submission(
        title: str,
        score: int = 100,
        num_comments: int = 10,
        upvote_ratio: float = 0.9,
        item_id: str = "s1",
        subreddit: str = "python",
        awards: int = 0,
        created_utc: float = NOW_TS - 5 * 3600,
    ) -> dict:
        return {
            "kind": "t3",
            "data": {
                "id": item_id,
                "title": title,
                "score": score,
                "num_comments": num_comments,
                "upvote_ratio": upvote_ratio,
                "subreddit": subreddit,
                "total_awards_received": awards,
                "created_utc": created_utc,
            },
        }

    @classmethod
    def post(
        cls,
        post_id: str = "abc123",
        title: str = "I love this wonderful library",
        selftext: str = "",
        subreddit: str = "python",
        ups: int = 1000,
        num_comments: int = 50,
        upvote_ratio: float = 0.9,
        awards: int = 2,
        created_utc: float = NOW_TS - 5 * 3600,
        comments: list[str] | None = None,
    ) -> list[dict]:
        post = {
            "kind": "t3",
            "data": {
                "id": post_id,
                "title": title,
                "selftext": selftext,
                "author": "someone",
                "subreddit": subreddit,
                "ups": ups,
                "upvote_ratio": upvote_ratio,
                "num_comments": num_comments,
                "total_awards_received": awards,
                "created_utc": created_utc,
                "is_video": False,
                "domain": f"self.{subreddit}",
                "url": f"https://www.reddit.com/r/{subreddit}/comments/{post_id}/title/",
                "permalink": f"/r/{subreddit}/comments/{post_id}/title/",
                "thumbnail": "self",
            },
        }
        bodies = comments if comments is not None else ["Great post, thanks!", "This is terrible"]
        return [
            cls.listing([post]),
            cls.listing([cls.comment(body, item_id=f"c{i}") for i, body in enumerate(bodies)]),
        ]

    @staticmethod
    def subreddit_about(name: str = "python", subscribers: int = 100_000, active_users: int = 500) -> dict:
        return {
            "kind": "t5",
            "data": {
                "display_name": name,
                "subscribers": subscribers,
                "active_user_count": active_users,
                "public_description": "News about the programming language Python",
                "advertiser_category": "Technology",
                "created_utc": NOW_TS - 365 * 86400,
                "over18": False,
                "icon_img": "https://styles.redditmedia.com/icon.png?a=1&amp;b=2",
                "lang": "en",
            },
        }

    @staticmethod
    def user_about(name: str = "spez", link_karma: int = 100, comment_karma: int = 50) -> dict:
        return {
            "kind": "t2",
            "data": {
                "name": name,
                "created_utc": NOW_TS - 10 * 86400,
                "link_karma": link_karma,
                "comment_karma": comment_karma,
                "total_karma": link_karma + comment_karma,
                "verified": True,
                "subreddit": {"subscribers": 1000},
            },
        }

    @staticmethod
    def oembed(title: str = "I love this wonderful library") -> dict:
        return {
            "title": title,
            "author_name": "someone",
            "provider_name": "reddit",
            "thumbnail_url": "https://preview.redd.it/thumb.jpg?width=140&amp;s=x",
        }


@pytest.fixture
def reddit():
    """Reddit payload builders."""
    return RedditPayloads


@pytest.fixture
def now():
    return NOW


def route_transport(routes: dict) -> httpx.MockTransport:
    """
    MockTransport that answers by URL path.

    Values are an httpx.Response, a JSON-able object (served with 200), or a
    callable taking the request. Unknown paths get 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found", "error": 404})
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            # Fresh copy per request; the same route may be hit on every retry
            return httpx.Response(route.status_code, headers=route.headers, content=route.content)
        return httpx.Response(200, json=route)

    return httpx.MockTransport(handler)


@pytest.fixture
def transport_factory():
    return route_transport


@pytest.fixture
def no_sleep():
    """Awaitable sleep replacement that records requested delays."""
    return AsyncMock(return_value=None)


class CountingTransport(httpx.MockTransport):
    """MockTransport that records request paths."""

    def __init__(self, inner: httpx.MockTransport):
        self.paths: list[str] = []
        super().__init__(self._record)
        self._inner = inner

    def _record(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        return self._inner.handler(request)


@pytest.fixture(scope="session")
def sentiment_scorer():
    from app.services.sentiment import SentimentScorer

    return SentimentScorer()


@pytest.fixture
def service_factory(no_sleep, sentiment_scorer):
    """
    Build a RedditAnalyticsService over MockTransport routes.

    Returns (service, transport); transport.paths lists every upstream request.
    """
    from app.services.analytics_store import AnalyticsStore
    from app.services.reddit_analytics import RedditAnalyticsService
    from app.services.reddit_sources import FanOutAggregator, RetryingFetcher
    from app.services.resilience import RateLimiter
    from app.services.result_cache import ResultCache

    def _build(routes: dict, store=None, max_attempts: int = 3):
        transport = CountingTransport(route_transport(routes))
        fetcher = RetryingFetcher(
            RateLimiter(max_requests=1000, window_seconds=60),
            client=httpx.AsyncClient(transport=transport),
            sleep=no_sleep,
        )
        service = RedditAnalyticsService(
            aggregator=FanOutAggregator(fetcher),
            scorer=sentiment_scorer,
            cache=ResultCache(),
            store=store or AnalyticsStore(None),
            max_attempts=max_attempts,
            timeout=5.0,
            insight_cache=ResultCache(default_ttl_seconds=3600),
            now=lambda: NOW,
        )
        return service, transport

    return _build
