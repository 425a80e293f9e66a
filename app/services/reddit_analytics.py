# app/services/reddit_analytics.py
"""
Analytics pipeline orchestrator for posts, users and subreddits.

Each request moves through:
    cache_check -> fetching -> aggregating -> scoring -> persisting -> done
with two failure exits: rejected_input (before the cache check) and
upstream_failed (the primary source failed). Secondary sources may fail
without failing the request; they are reported as warnings and replaced by
documented defaults. A persistence failure is also only a warning.
"""

import asyncio
import logging
import math
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from app.constants import CacheDefaults, InputLimits, SentimentWeights
from app.llm.base import TextGenerationError, TextGenerator
from app.llm.prompts import build_insight_prompt
from app.logging_config import log_stage
from app.schemas.analytics import (
    AnalyticsResponse,
    InsightResponse,
    MetricsSummary,
    PostAnalytics,
    PostEngagement,
    PostMetadata,
    RecentItem,
    SentimentBreakdown,
    SentimentSummary,
    SubredditAnalytics,
    SubredditEngagement,
    SubredditMedia,
    SubredditMetadata,
    SubredditRestrictions,
    UserActivity,
    UserAnalytics,
    UserKarma,
    UserProfile,
    WeeklyActivity,
)
from app.services.analytics_store import AnalyticsStore
from app.services.metrics import (
    build_metrics,
    controversy_score,
    engagement_score,
    mean_score,
    virality_score,
)
from app.services.reddit_sources import urls
from app.services.reddit_sources.adapters import (
    EmbedInfo,
    Listing,
    ListingItem,
    PayloadShapeError,
    parse_listing,
    parse_oembed,
    parse_post_listing,
    parse_subreddit_about,
    parse_user_about,
)
from app.services.reddit_sources.aggregator import FanOutAggregator
from app.services.reddit_sources.base import ErrorKind, Failure, FetchOutcome, FetchRequest
from app.services.reddit_sources.errors import (
    AnalyticsError,
    InsightUnavailableError,
    InvalidInputError,
    NotFoundError,
    PartialSourceFailure,
    StoreError,
    UpstreamError,
)
from app.services.resilience import BackoffPolicy
from app.services.result_cache import ResultCache
from app.services.sentiment import CommentSentiment, SentimentResult, SentimentScorer

logger = logging.getLogger(__name__)

STORE_WARNING = "Database save failed"


class PipelineState(str, Enum):
    """States of one analytics request."""

    CACHE_CHECK = "cache_check"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    SCORING = "scoring"
    PERSISTING = "persisting"
    DONE = "done"
    REJECTED_INPUT = "rejected_input"
    UPSTREAM_FAILED = "upstream_failed"


def _sentiment_summary(
    result: SentimentResult,
    components: dict[str, SentimentResult] | None = None,
    distribution: dict[str, int] | None = None,
) -> SentimentSummary:
    breakdown = result.breakdown()
    return SentimentSummary(
        compound=round(result.compound, 4),
        category=result.category.value,
        confidence=round(result.confidence, 4),
        breakdown=SentimentBreakdown(**breakdown),
        components={name: round(r.compound, 4) for name, r in (components or {}).items()},
        distribution=distribution,
    )


def _to_datetime(epoch: float | None) -> datetime | None:
    if epoch is None:
        return None
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Timestamp out of range: {epoch}")
        return None


class RedditAnalyticsService:
    """
    Ties fetching, aggregation, scoring, caching and persistence together.

    One instance serves the whole process; it keeps no per-request state.
    """

    def __init__(
        self,
        aggregator: FanOutAggregator,
        scorer: SentimentScorer,
        cache: ResultCache,
        store: AnalyticsStore,
        max_attempts: int,
        timeout: float,
        cache_ttl_seconds: float | None = None,
        insight_cache: ResultCache | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self.aggregator = aggregator
        self.scorer = scorer
        self.cache = cache
        self.store = store
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.cache_ttl_seconds = cache_ttl_seconds
        self.insight_cache = insight_cache
        self._now = now or (lambda: datetime.now(timezone.utc))

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    async def analyze_post(self, url: str) -> AnalyticsResponse[PostAnalytics]:
        """
        Analytics for a single post.

        Raises:
            InvalidInputError: Malformed URL (no network call made)
            NotFoundError: The post does not exist
            UpstreamError: The post could not be fetched
        """
        post_id = self._validate(urls.extract_post_id, url)
        key = f"post:{post_id}"

        cached = self._cache_check(key, "Post analytics fetched from cache")
        if cached is not None:
            return cached

        with log_stage(PipelineState.FETCHING.value, entity=key):
            outcomes = await self.aggregator.aggregate(
                {
                    "post": self._request(urls.post_url(post_id)),
                    "oembed": self._request(urls.oembed_url(url.strip()), BackoffPolicy.EXPONENTIAL),
                }
            )

        partials: list[PartialSourceFailure] = []
        with log_stage(PipelineState.AGGREGATING.value, entity=key):
            post_outcome = self._require_primary(outcomes["post"], "Post", "POST_NOT_FOUND")
            try:
                post, comments = parse_post_listing(post_outcome.payload)
            except PayloadShapeError as e:
                raise self._upstream_failed(NotFoundError(f"Post not found: {e}", code="POST_NOT_FOUND")) from e

            embed = self._secondary(outcomes["oembed"], "oembed", parse_oembed, "no thumbnail or embed fallbacks", partials)
            embed = embed or EmbedInfo()

            subscribers = None
            if post.subreddit:
                sub_outcomes = await self.aggregator.aggregate(
                    {"subreddit": self._request(urls.subreddit_about_url(post.subreddit))}
                )
                about = self._secondary(
                    sub_outcomes["subreddit"],
                    "subreddit",
                    parse_subreddit_about,
                    "engagement score set to 0",
                    partials,
                )
                subscribers = about.subscribers if about else None
            else:
                partials.append(PartialSourceFailure("subreddit", "post has no subreddit", "engagement score set to 0"))

        with log_stage(PipelineState.SCORING.value, entity=key):
            now = self._now()
            title = post.title or embed.title or ""
            title_sentiment = self.scorer.score(title)
            body_sentiment = self.scorer.score(post.selftext)
            comment_sentiment = self.scorer.score_comments(comments[: InputLimits.COMMENTS_TO_SCORE])
            overall = self.scorer.blend_result(
                [
                    (title_sentiment, SentimentWeights.POST_TITLE),
                    (body_sentiment, SentimentWeights.POST_BODY),
                    (comment_sentiment.overall, SentimentWeights.POST_COMMENTS),
                ]
            )

            age_hours = self._age_hours(post.created_utc, now)
            metrics = build_metrics(
                upvotes=post.ups,
                comments=post.num_comments,
                awards=post.awards,
                upvote_ratio=post.upvote_ratio,
                age_hours=age_hours,
                subscribers=subscribers,
            )

            analytics = PostAnalytics(
                post_id=post_id,
                title=title,
                author=post.author if post.author != "Unknown" else (embed.author_name or "Unknown"),
                subreddit=post.subreddit or embed.provider_name or "Reddit",
                sentiment=_sentiment_summary(
                    overall,
                    {"title": title_sentiment, "body": body_sentiment, "comments": comment_sentiment.overall},
                    comment_sentiment.distribution,
                ),
                engagement=PostEngagement(
                    upvotes=post.ups,
                    upvote_ratio=post.upvote_ratio,
                    comments=post.num_comments,
                    awards=post.awards,
                    score=metrics.score,
                    controversy_score=metrics.controversy_score,
                    virality_score=metrics.virality_score,
                    comments_per_upvote=metrics.comments_per_upvote,
                    velocity=metrics.velocity,
                ),
                metadata=PostMetadata(
                    created=_to_datetime(post.created_utc),
                    is_video=post.is_video,
                    domain=post.domain,
                    thumbnail=embed.thumbnail_url or post.thumbnail,
                    url=post.url or url.strip(),
                ),
                analytics_timestamp=now,
            )

        return await self._persist_and_cache(key, analytics, self.store.upsert_post, partials, "Post analytics fetched successfully")

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def analyze_user(self, username: str) -> AnalyticsResponse[UserAnalytics]:
        """
        Analytics for a redditor: karma, profile, and recent activity.

        Raises:
            InvalidInputError, NotFoundError, UpstreamError
        """
        username = self._validate(urls.validate_username, username)
        key = f"user:{username.lower()}"

        cached = self._cache_check(key, "User analytics fetched from cache")
        if cached is not None:
            return cached

        with log_stage(PipelineState.FETCHING.value, entity=key):
            outcomes = await self.aggregator.aggregate(
                {
                    "about": self._request(urls.user_about_url(username)),
                    "overview": self._request(urls.user_overview_url(username)),
                }
            )

        partials: list[PartialSourceFailure] = []
        with log_stage(PipelineState.AGGREGATING.value, entity=key):
            about_outcome = self._require_primary(outcomes["about"], "User", "USER_NOT_FOUND")
            try:
                user = parse_user_about(about_outcome.payload)
            except PayloadShapeError as e:
                raise self._upstream_failed(NotFoundError(f"User not found: {e}", code="USER_NOT_FOUND")) from e
            overview = self._secondary(outcomes["overview"], "overview", parse_listing, "no recent activity", partials)
            overview = overview or Listing()

        with log_stage(PipelineState.SCORING.value, entity=key):
            now = self._now()
            activity_sentiment = self.scorer.score_comments(item.text for item in overview.items)
            submissions = overview.submissions

            total_ups = sum(max(0, item.score) for item in submissions)
            total_comments = sum(item.num_comments for item in submissions)
            engagement = MetricsSummary(
                score=engagement_score(total_ups, total_comments, user.profile_subscribers),
                controversy_score=mean_score([controversy_score(i.upvote_ratio, i.num_comments, i.score) for i in submissions]),
                virality_score=mean_score([self._item_virality(i, None, now) for i in submissions]),
                comments_per_upvote=round(total_comments / total_ups, 2) if total_ups > 0 else 0.0,
                velocity=self._mean_velocity(submissions, now),
            )

            created = user.created_utc
            account_age_days = int((now.timestamp() - created) // 86400) if created else 0
            recent = [
                RecentItem(
                    id=item.item_id,
                    kind=item.kind,
                    title=item.text[:300],
                    subreddit=item.subreddit,
                    score=item.score,
                    created=item.created_utc,
                )
                for item in overview.items
            ]

            analytics = UserAnalytics(
                username=user.username,
                account_age_days=max(0, account_age_days),
                karma=UserKarma(
                    total=user.total_karma,
                    post=user.link_karma,
                    comment=user.comment_karma,
                    awardee=user.awardee_karma,
                    awarder=user.awarder_karma,
                ),
                profile=UserProfile(
                    created=_to_datetime(created),
                    is_employee=user.is_employee,
                    is_gold=user.is_gold,
                    is_mod=user.is_mod,
                    verified=user.verified,
                    icon=user.icon,
                    banner=user.banner,
                ),
                activity=UserActivity(
                    recent_posts=len(recent),
                    avg_post_sentiment=round(activity_sentiment.overall.compound, 3),
                    last_active=recent[0].created if recent and recent[0].created else created,
                    recent=recent,
                ),
                sentiment=_sentiment_summary(
                    activity_sentiment.overall,
                    {"recent_activity": activity_sentiment.overall},
                    activity_sentiment.distribution,
                ),
                engagement=engagement,
                analytics_timestamp=now,
            )

        return await self._persist_and_cache(key, analytics, self.store.upsert_user, partials, "User analytics fetched successfully")

    # -------------------------------------------------------------------------
    # Subreddits
    # -------------------------------------------------------------------------

    async def analyze_subreddit(self, name: str) -> AnalyticsResponse[SubredditAnalytics]:
        """
        Analytics for a community: size, rules, weekly top posts and new posts.

        Raises:
            InvalidInputError, NotFoundError, UpstreamError
        """
        name = self._validate(urls.validate_subreddit_name, name)
        key = f"subreddit:{name.lower()}"

        cached = self._cache_check(key, "Subreddit analytics fetched from cache")
        if cached is not None:
            return cached

        with log_stage(PipelineState.FETCHING.value, entity=key):
            outcomes = await self.aggregator.aggregate(
                {
                    "about": self._request(urls.subreddit_about_url(name)),
                    "top": self._request(urls.subreddit_top_url(name)),
                    "new": self._request(urls.subreddit_new_url(name)),
                }
            )

        partials: list[PartialSourceFailure] = []
        with log_stage(PipelineState.AGGREGATING.value, entity=key):
            about_outcome = self._require_primary(outcomes["about"], "Subreddit", "SUBREDDIT_NOT_FOUND")
            try:
                about = parse_subreddit_about(about_outcome.payload)
            except PayloadShapeError as e:
                raise self._upstream_failed(NotFoundError(f"Subreddit not found: {e}", code="SUBREDDIT_NOT_FOUND")) from e
            top = self._secondary(outcomes["top"], "top", parse_listing, "weekly activity empty", partials) or Listing()
            new = self._secondary(outcomes["new"], "new", parse_listing, "virality score set to 0", partials) or Listing()

        with log_stage(PipelineState.SCORING.value, entity=key):
            now = self._now()
            top_posts = top.submissions
            new_posts = new.submissions

            top_sentiment = self.scorer.score_comments(item.text for item in top_posts)
            new_sentiment = self.scorer.score_comments(item.text for item in new_posts)
            overall = self.scorer.blend_result(
                [
                    (top_sentiment.overall, SentimentWeights.SUBREDDIT_TOP),
                    (new_sentiment.overall, SentimentWeights.SUBREDDIT_NEW),
                ]
            )

            total_upvotes = sum(max(0, item.score) for item in top_posts)
            total_comments = sum(item.num_comments for item in top_posts)
            analytics = SubredditAnalytics(
                name=about.name,
                subscribers=about.subscribers,
                active_users=about.active_users,
                description=about.description,
                rules=about.rules,
                category=about.category,
                restrictions=SubredditRestrictions(
                    over18=about.over18,
                    quarantine=about.quarantine,
                    restrict_posting=about.restrict_posting,
                    restrict_commenting=about.restrict_commenting,
                ),
                engagement=SubredditEngagement(
                    score=engagement_score(total_upvotes, total_comments, about.subscribers),
                    controversy_score=mean_score(
                        [controversy_score(i.upvote_ratio, i.num_comments, i.score) for i in top_posts]
                    ),
                    virality_score=mean_score([self._item_virality(i, about.subscribers, now) for i in new_posts]),
                    comments_per_upvote=round(total_comments / total_upvotes, 2) if total_upvotes > 0 else 0.0,
                    velocity=self._mean_velocity(new_posts, now),
                    subscribers_to_active_ratio=(
                        round(about.subscribers / about.active_users, 2) if about.active_users > 0 else 0.0
                    ),
                    weekly_activity=WeeklyActivity(
                        total_upvotes=total_upvotes,
                        total_comments=total_comments,
                        avg_sentiment=round(top_sentiment.overall.compound, 3),
                    ),
                    created=_to_datetime(about.created_utc),
                ),
                sentiment=_sentiment_summary(
                    overall,
                    {"top": top_sentiment.overall, "new": new_sentiment.overall},
                    self._merge_distributions(top_sentiment, new_sentiment),
                ),
                media=SubredditMedia(
                    icon=about.icon,
                    banner=about.banner,
                    banner_background_color=about.banner_background_color,
                    key_color=about.key_color,
                ),
                metadata=SubredditMetadata(
                    lang=about.lang,
                    whitelist_status=about.whitelist_status,
                    submission_type=about.submission_type,
                ),
                analytics_timestamp=now,
            )

        return await self._persist_and_cache(
            key, analytics, self.store.upsert_subreddit, partials, "Subreddit analytics fetched successfully"
        )

    # -------------------------------------------------------------------------
    # Insight
    # -------------------------------------------------------------------------

    async def post_insight(self, post_id: str, generator: TextGenerator | None) -> InsightResponse:
        """
        LLM-written summary of a post's analytics.

        Uses analytics already computed for the post (cache first, then the
        store); it never triggers a fresh fetch.

        Raises:
            InvalidInputError: Malformed post id
            NotFoundError: No analytics exist for the post yet
            InsightUnavailableError: No generator is configured
            UpstreamError: Generation failed
        """
        post_id = self._validate(urls.validate_post_id, post_id)
        key = f"insight:{post_id}"
        if self.insight_cache is not None:
            cached = self.insight_cache.get(key)
            if cached is not None:
                return InsightResponse(post_id=post_id, insight=cached, cached=True)

        if generator is None:
            raise InsightUnavailableError("AI insight is not configured")

        analytics = await self._load_post(post_id)
        if analytics is None:
            raise NotFoundError("No analytics for this post yet. Analyze it first.", code="POST_NOT_FOUND")

        try:
            insight = await asyncio.to_thread(generator.generate, build_insight_prompt(analytics))
        except TextGenerationError as e:
            raise UpstreamError(f"Failed to generate insight: {e}", code="INSIGHT_FAILED") from e

        if self.insight_cache is not None:
            self.insight_cache.set(key, insight)
        return InsightResponse(post_id=post_id, insight=insight, cached=False)

    async def _load_post(self, post_id: str) -> PostAnalytics | None:
        cached = self.cache.get(f"post:{post_id}")
        if cached is not None:
            return cached.data
        if not self.store.enabled:
            return None
        try:
            return await asyncio.to_thread(self.store.get_post, post_id)
        except StoreError as e:
            logger.warning(f"Could not load stored analytics for post {post_id}: {e}")
            return None

    # -------------------------------------------------------------------------
    # Pipeline steps
    # -------------------------------------------------------------------------

    def _validate(self, validator: Callable, value):
        try:
            return validator(value)
        except InvalidInputError as e:
            logger.info(
                f"Rejected input: {e.message}",
                extra={"event": PipelineState.REJECTED_INPUT.value},
            )
            raise

    def _cache_check(self, key: str, message: str) -> AnalyticsResponse | None:
        with log_stage(PipelineState.CACHE_CHECK.value, entity=key):
            cached = self.cache.get(key)
        if cached is None:
            return None
        return cached.model_copy(update={"cached": True, "message": message})

    def _request(self, url: str, backoff: BackoffPolicy = BackoffPolicy.LINEAR) -> FetchRequest:
        return FetchRequest(url=url, max_attempts=self.max_attempts, timeout=self.timeout, backoff=backoff)

    def _upstream_failed(self, error: AnalyticsError) -> AnalyticsError:
        logger.warning(
            f"Primary source failed: {error.message}",
            extra={"event": PipelineState.UPSTREAM_FAILED.value},
        )
        return error

    def _require_primary(self, outcome: FetchOutcome, entity: str, not_found_code: str):
        if outcome.ok:
            return outcome
        if outcome.error_kind == ErrorKind.NOT_FOUND:
            raise self._upstream_failed(NotFoundError(f"{entity} not found", code=not_found_code))
        raise self._upstream_failed(
            UpstreamError(
                f"Failed to fetch {entity.lower()} analytics: {outcome.last_error}",
                upstream_status=outcome.status_code,
            )
        )

    @staticmethod
    def _secondary(outcome: FetchOutcome, source: str, parser: Callable, default_applied: str, partials: list):
        """Parse a secondary source, recording a PartialSourceFailure instead of raising."""
        if isinstance(outcome, Failure):
            partials.append(PartialSourceFailure(source, outcome.error_kind.value, default_applied))
            return None
        try:
            return parser(outcome.payload)
        except PayloadShapeError as e:
            logger.info(f"Secondary source '{source}' had an unexpected shape: {e}")
            partials.append(PartialSourceFailure(source, ErrorKind.INVALID_PAYLOAD.value, default_applied))
            return None

    async def _persist_and_cache(self, key: str, analytics, upsert: Callable, partials: list, message: str) -> AnalyticsResponse:
        warnings = [p.as_warning() for p in partials]
        result = AnalyticsResponse[type(analytics)](message=message, data=analytics, warnings=warnings)

        store_failed = False
        if self.store.enabled:
            with log_stage(PipelineState.PERSISTING.value, entity=key):
                try:
                    await asyncio.to_thread(upsert, analytics)
                except StoreError as e:
                    store_failed = True
                    logger.warning(f"Persisting {key} failed, returning unsaved result: {e}")

        # Cached copy omits the store warning; it describes this attempt only
        self.cache.set(key, result, self.cache_ttl_seconds)
        logger.info(
            f"Analytics computed for {key}",
            extra={"event": PipelineState.DONE.value, "cache_key": key},
        )

        if store_failed:
            return result.model_copy(
                update={"message": "Analytics fetched (not saved to DB)", "warnings": [*warnings, STORE_WARNING]}
            )
        return result

    # -------------------------------------------------------------------------
    # Metric helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _age_hours(created_utc: float | None, now: datetime) -> float:
        if not created_utc:
            return 0.0
        return max(0.0, (now.timestamp() - created_utc) / 3600)

    def _item_virality(self, item: ListingItem, subreddit_size: int | None, now: datetime) -> int:
        return virality_score(
            max(0, item.score),
            item.num_comments,
            item.awards,
            self._age_hours(item.created_utc, now),
            subreddit_size,
        )

    def _mean_velocity(self, items: list[ListingItem], now: datetime) -> float:
        velocities = []
        for item in items:
            age = self._age_hours(item.created_utc, now)
            if age > 0:
                velocities.append(max(0, item.score) / age)
        if not velocities:
            return 0.0
        value = sum(velocities) / len(velocities)
        return round(value, 2) if math.isfinite(value) else 0.0

    @staticmethod
    def _merge_distributions(*sentiments: CommentSentiment) -> dict[str, int]:
        merged: dict[str, int] = {}
        for sentiment in sentiments:
            for category, count in sentiment.distribution.items():
                merged[category] = merged.get(category, 0) + count
        return merged


def build_analytics_service(settings, client=None) -> RedditAnalyticsService:
    """
    Wire a service from settings. The rate limiter and fetcher are shared by
    every request the service handles.

    Args:
        settings: app.config.Settings
        client: Optional httpx.AsyncClient for the fetcher (tests)
    """
    from app.database import get_session_factory
    from app.services.reddit_sources.fetcher import RetryingFetcher
    from app.services.resilience import RateLimiter

    limiter = RateLimiter(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        max_per_second=settings.RATE_LIMIT_MAX_PER_SECOND,
    )
    fetcher = RetryingFetcher(limiter, client=client, user_agent=settings.REDDIT_USER_AGENT)
    return RedditAnalyticsService(
        aggregator=FanOutAggregator(fetcher),
        scorer=SentimentScorer(),
        cache=ResultCache(default_ttl_seconds=settings.CACHE_TTL_SECONDS, maxsize=settings.CACHE_MAX_ENTRIES),
        store=AnalyticsStore(get_session_factory()),
        max_attempts=settings.FETCH_MAX_ATTEMPTS,
        timeout=settings.FETCH_TIMEOUT_SECONDS,
        insight_cache=ResultCache(
            default_ttl_seconds=CacheDefaults.INSIGHT_TTL_SECONDS,
            maxsize=settings.CACHE_MAX_ENTRIES,
        ),
    )
