# tests/unit/test_metrics.py
"""
Unit tests for engagement, controversy and virality metrics.
"""

import pytest

from app.services.metrics import (
    build_metrics,
    controversy_score,
    engagement_score,
    mean_score,
    virality_score,
)


class TestEngagementScore:
    def test_weighted_ratio(self):
        assert engagement_score(upvotes=10, comments=10, subscriber_count=10_000) == 10

    def test_clamped_to_100(self):
        assert engagement_score(upvotes=500, comments=0, subscriber_count=1000) == 100

    @pytest.mark.parametrize("subscribers", [None, 0, -5])
    def test_unknown_community_size_scores_zero(self, subscribers):
        assert engagement_score(upvotes=1000, comments=50, subscriber_count=subscribers) == 0


class TestControversyScore:
    def test_even_split_with_heavy_discussion(self):
        assert controversy_score(upvote_ratio=0.5, comment_count=100, upvote_count=100) == 100

    def test_unanimous_votes(self):
        assert controversy_score(upvote_ratio=1.0, comment_count=100, upvote_count=100) == 0

    def test_partial_split_and_discussion(self):
        assert controversy_score(upvote_ratio=0.75, comment_count=5, upvote_count=100) == 25

    def test_below_minimum_upvotes(self):
        assert controversy_score(upvote_ratio=0.5, comment_count=100, upvote_count=9) == 0

    def test_missing_ratio(self):
        assert controversy_score(upvote_ratio=None, comment_count=100, upvote_count=100) == 0


class TestViralityScore:
    def test_reference_post(self):
        assert virality_score(1000, 50, 2, 5, 100_000) == 60

    def test_unknown_community_size_not_normalized(self):
        assert virality_score(1000, 0, 0, 5, None) == 80

    @pytest.mark.parametrize("upvotes,age_hours", [(0, 5), (1000, 0), (-3, 5)])
    def test_degenerate_inputs_score_zero(self, upvotes, age_hours):
        assert virality_score(upvotes, 50, 2, age_hours, 100_000) == 0

    def test_clamped_to_100(self):
        assert virality_score(10_000_000, 0, 0, 1, None) == 100


@pytest.mark.parametrize(
    "args",
    [
        (0, 0, 0, None, 0.0, None),
        (10**9, 10**9, 10**6, 0.5, 0.001, 1),
        (1, 0, 0, 0.0, 10_000.0, 10**9),
    ],
)
def test_all_scores_bounded(args):
    metrics = build_metrics(*args)
    for score in (metrics.score, metrics.controversy_score, metrics.virality_score):
        assert isinstance(score, int)
        assert 0 <= score <= 100


class TestBuildMetrics:
    def test_bundle(self):
        metrics = build_metrics(
            upvotes=1000, comments=50, awards=2, upvote_ratio=0.9, age_hours=5, subscribers=100_000
        )

        assert metrics.virality_score == 60
        assert metrics.comments_per_upvote == 0.05
        assert metrics.velocity == 200.0
        assert metrics.score == engagement_score(1000, 50, 100_000)

    def test_zero_upvotes(self):
        metrics = build_metrics(upvotes=0, comments=5, awards=0, upvote_ratio=None, age_hours=0, subscribers=None)

        assert metrics.comments_per_upvote == 0.0
        assert metrics.velocity == 0.0


class TestMeanScore:
    def test_mean_rounded(self):
        assert mean_score([10, 20, 31]) == 20

    def test_empty(self):
        assert mean_score([]) == 0
