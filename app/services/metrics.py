# app/services/metrics.py
"""
Derived engagement metrics.

Pure functions from raw counts to bounded integer scores in [0, 100].
Engagement uses the x100 scaling of the raw per-subscriber ratios.
"""

import math
from dataclasses import dataclass

from app.constants import MetricWeights as W


def _clamp_score(value: float) -> int:
    if math.isnan(value):
        return W.SCORE_MIN
    return int(max(W.SCORE_MIN, min(W.SCORE_MAX, round(value))))


def engagement_score(upvotes: int, comments: int, subscriber_count: int | None) -> int:
    """Upvotes and comments relative to community size, weighted 70/30."""
    if not subscriber_count or subscriber_count <= 0:
        return 0
    upvote_ratio = max(0, upvotes) / subscriber_count
    comment_ratio = max(0, comments) / subscriber_count
    raw = (upvote_ratio * W.ENGAGEMENT_UPVOTE_WEIGHT + comment_ratio * W.ENGAGEMENT_COMMENT_WEIGHT) * W.ENGAGEMENT_SCALE
    return _clamp_score(raw)


def controversy_score(upvote_ratio: float | None, comment_count: int, upvote_count: int) -> int:
    """
    High when votes split near 50/50 and comments are heavy relative to upvotes.

    Posts with fewer than 10 upvotes, or without a ratio, score 0.
    """
    if upvote_ratio is None or upvote_count < W.CONTROVERSY_MIN_UPVOTES:
        return 0
    ratio = max(0.0, min(1.0, upvote_ratio))
    split = 1 - 2 * abs(0.5 - ratio)
    discussion = min(1.0, max(0, comment_count) / max(1.0, upvote_count * W.CONTROVERSY_COMMENT_BASELINE))
    return _clamp_score(split * discussion * 100)


def virality_score(
    upvotes: int,
    comment_count: int,
    award_count: int,
    age_hours: float,
    subreddit_size: int | None,
) -> int:
    """
    Upvote velocity, discussion and awards, scaled by community size.

    >>> virality_score(1000, 50, 2, 5, 100_000)
    60
    """
    if upvotes <= 0 or age_hours <= 0:
        return 0
    velocity = upvotes / age_hours
    comment_ratio = max(0, comment_count) / upvotes * 100
    award_bonus = min(max(0, award_count) * W.VIRALITY_AWARD_POINTS, W.VIRALITY_AWARD_CAP)
    size_normalizer = math.log10(subreddit_size) / W.VIRALITY_SIZE_LOG_DIVISOR if subreddit_size and subreddit_size > 0 else 1.0

    raw = (
        velocity * W.VIRALITY_VELOCITY_WEIGHT
        + comment_ratio * W.VIRALITY_COMMENT_WEIGHT
        + award_bonus * W.VIRALITY_AWARD_WEIGHT
    ) * size_normalizer
    return _clamp_score(raw)


@dataclass(frozen=True)
class MetricsBundle:
    score: int
    controversy_score: int
    virality_score: int
    comments_per_upvote: float
    velocity: float


def build_metrics(
    upvotes: int,
    comments: int,
    awards: int,
    upvote_ratio: float | None,
    age_hours: float,
    subscribers: int | None,
) -> MetricsBundle:
    """All derived metrics for a single post."""
    return MetricsBundle(
        score=engagement_score(upvotes, comments, subscribers),
        controversy_score=controversy_score(upvote_ratio, comments, upvotes),
        virality_score=virality_score(upvotes, comments, awards, age_hours, subscribers),
        comments_per_upvote=round(comments / upvotes, 2) if upvotes > 0 else 0.0,
        velocity=round(upvotes / age_hours, 2) if age_hours > 0 else 0.0,
    )


def mean_score(scores: list[int]) -> int:
    if not scores:
        return 0
    return _clamp_score(sum(scores) / len(scores))
