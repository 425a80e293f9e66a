# app/routers/reddit.py
"""
Reddit analytics endpoints.

POST /v1/reddit/post                      - Analytics for a post URL
GET  /v1/reddit/user/{username}           - Analytics for a redditor
GET  /v1/reddit/subreddit/{name}          - Analytics for a community
GET  /v1/reddit/post/{post_id}/insight    - AI summary of analyzed post
GET  /v1/reddit/test                      - Liveness of the analytics API

The same routes are also served under /api/reddit for existing clients.
"""

from fastapi import APIRouter, Depends, Request

from app.llm import TextGenerator
from app.schemas.analytics import (
    AnalyticsResponse,
    InsightResponse,
    PostAnalytics,
    PostAnalyticsRequest,
    SubredditAnalytics,
    UserAnalytics,
)
from app.services.reddit_analytics import RedditAnalyticsService

API_PREFIX = "/v1/reddit"
LEGACY_PREFIX = "/api/reddit"

router = APIRouter(tags=["reddit"])


def get_analytics_service(request: Request) -> RedditAnalyticsService:
    """The process-wide service built at startup."""
    return request.app.state.analytics_service


def get_insight_generator(request: Request) -> TextGenerator | None:
    """The generator built at startup; None when insights are disabled."""
    return getattr(request.app.state, "insight_generator", None)


@router.post("/post", response_model=AnalyticsResponse[PostAnalytics])
async def analyze_post(
    body: PostAnalyticsRequest,
    service: RedditAnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse[PostAnalytics]:
    """
    Sentiment, engagement, controversy and virality for a single post.

    Accepts .../comments/<id>/... and redd.it/<id> links. Results are cached
    for a few minutes; `cached` tells whether this response came from cache.
    """
    return await service.analyze_post(body.url)


@router.get("/user/{username}", response_model=AnalyticsResponse[UserAnalytics])
async def analyze_user(
    username: str,
    service: RedditAnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse[UserAnalytics]:
    return await service.analyze_user(username)


@router.get("/subreddit/{name}", response_model=AnalyticsResponse[SubredditAnalytics])
async def analyze_subreddit(
    name: str,
    service: RedditAnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse[SubredditAnalytics]:
    return await service.analyze_subreddit(name)


@router.get("/post/{post_id}/insight", response_model=InsightResponse)
async def post_insight(
    post_id: str,
    service: RedditAnalyticsService = Depends(get_analytics_service),
    generator: TextGenerator | None = Depends(get_insight_generator),
) -> InsightResponse:
    """
    Short AI-written read of an already analyzed post.

    Returns 404 if the post has not been analyzed yet and 503 when no
    text-generation provider is configured.
    """
    return await service.post_insight(post_id, generator)


@router.get("/test")
def reddit_test() -> dict:
    return {"success": True, "message": "Reddit analytics API is working"}
