"""
Schemas for Reddit analytics endpoints.

The analytics records are frozen: a later run replaces a record, it never
edits one in place.
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from app.constants import SCORING_VERSION


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# -----------------------------------------------------------------------------
# Shared pieces
# -----------------------------------------------------------------------------


class SentimentBreakdown(_Frozen):
    positive: float = Field(..., ge=0, le=1)
    neutral: float = Field(..., ge=0, le=1)
    negative: float = Field(..., ge=0, le=1)


class SentimentSummary(_Frozen):
    """Overall sentiment, possibly blended from several sources."""

    compound: float = Field(..., ge=-1, le=1, description="Blended compound score")
    category: str = Field(..., description="Positive | Neutral | Negative")
    confidence: float = Field(..., ge=0, le=1, description="|compound|")
    breakdown: SentimentBreakdown
    components: dict[str, float] = Field(
        default_factory=dict,
        description="Compound score per source (e.g. title, body, comments)",
    )
    distribution: dict[str, int] | None = Field(
        None,
        description="Per-item category counts for comments or listing titles",
    )


class MetricsSummary(_Frozen):
    score: int = Field(..., ge=0, le=100, description="Engagement score")
    controversy_score: int = Field(..., ge=0, le=100)
    virality_score: int = Field(..., ge=0, le=100)
    comments_per_upvote: float = 0.0
    velocity: float = Field(0.0, description="Upvotes per hour")


# -----------------------------------------------------------------------------
# Posts
# -----------------------------------------------------------------------------


class PostEngagement(MetricsSummary):
    upvotes: int
    upvote_ratio: float | None = None
    comments: int
    awards: int


class PostMetadata(_Frozen):
    created: datetime | None = None
    is_video: bool = False
    domain: str = "self"
    thumbnail: str | None = None
    url: str


class PostAnalytics(_Frozen):
    post_id: str
    title: str
    author: str
    subreddit: str
    sentiment: SentimentSummary
    engagement: PostEngagement
    metadata: PostMetadata
    scoring_version: str = SCORING_VERSION
    analytics_timestamp: datetime


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


class UserKarma(_Frozen):
    total: int = 0
    post: int = 0
    comment: int = 0
    awardee: int = 0
    awarder: int = 0


class UserProfile(_Frozen):
    created: datetime | None = None
    is_employee: bool = False
    is_gold: bool = False
    is_mod: bool = False
    verified: bool = False
    icon: str | None = None
    banner: str | None = None


class RecentItem(_Frozen):
    id: str
    kind: str = Field(..., description="t3 submission or t1 comment")
    title: str
    subreddit: str
    score: int
    created: float | None = None


class UserActivity(_Frozen):
    recent_posts: int = 0
    avg_post_sentiment: float = 0.0
    last_active: float | None = None
    recent: list[RecentItem] = Field(default_factory=list)


class UserAnalytics(_Frozen):
    username: str
    account_age_days: int
    karma: UserKarma
    profile: UserProfile
    activity: UserActivity
    sentiment: SentimentSummary
    engagement: MetricsSummary
    scoring_version: str = SCORING_VERSION
    analytics_timestamp: datetime


# -----------------------------------------------------------------------------
# Subreddits
# -----------------------------------------------------------------------------


class SubredditRestrictions(_Frozen):
    over18: bool = False
    quarantine: bool = False
    restrict_posting: bool = False
    restrict_commenting: bool = False


class WeeklyActivity(_Frozen):
    total_upvotes: int = 0
    total_comments: int = 0
    avg_sentiment: float = 0.0


class SubredditEngagement(MetricsSummary):
    subscribers_to_active_ratio: float = 0.0
    weekly_activity: WeeklyActivity
    created: datetime | None = None


class SubredditMedia(_Frozen):
    icon: str | None = None
    banner: str | None = None
    banner_background_color: str | None = None
    key_color: str | None = None


class SubredditMetadata(_Frozen):
    lang: str = "en"
    whitelist_status: str = "none"
    submission_type: str = "any"


class SubredditAnalytics(_Frozen):
    name: str
    subscribers: int
    active_users: int
    description: str
    rules: list[str] = Field(default_factory=list)
    category: str = "General"
    restrictions: SubredditRestrictions
    engagement: SubredditEngagement
    sentiment: SentimentSummary
    media: SubredditMedia
    metadata: SubredditMetadata
    scoring_version: str = SCORING_VERSION
    analytics_timestamp: datetime


# -----------------------------------------------------------------------------
# Envelopes
# -----------------------------------------------------------------------------

T = TypeVar("T", PostAnalytics, UserAnalytics, SubredditAnalytics)


class AnalyticsResponse(_Frozen, Generic[T]):
    """
    Caller-facing result.

    `cached` is True when served from the result cache. `warnings` lists
    degraded sources and persistence problems.
    """

    success: bool = True
    message: str
    data: T
    cached: bool = False
    warnings: list[str] = Field(default_factory=list)


class PostAnalyticsRequest(BaseModel):
    url: str = Field(..., description="Reddit post URL (…/comments/<id>/… or redd.it/<id>)")


class InsightResponse(BaseModel):
    post_id: str
    insight: str
    cached: bool = False


class ErrorResponse(BaseModel):
    error: str
    code: str
