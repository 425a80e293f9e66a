# tests/unit/test_sentiment.py
"""
Unit tests for sentiment scoring and blending.
"""

import pytest

from app.services.sentiment import (
    SentimentCategory,
    SentimentResult,
    SentimentScorer,
    categorize,
)


@pytest.fixture(scope="module")
def scorer():
    return SentimentScorer()


def result(compound: float) -> SentimentResult:
    return SentimentResult(compound=compound, positive=0.2, neutral=0.7, negative=0.1)


class TestCategorize:
    @pytest.mark.parametrize(
        "compound,expected",
        [
            (0.05, SentimentCategory.POSITIVE),
            (0.9, SentimentCategory.POSITIVE),
            (0.0499, SentimentCategory.NEUTRAL),
            (0.0, SentimentCategory.NEUTRAL),
            (-0.0499, SentimentCategory.NEUTRAL),
            (-0.05, SentimentCategory.NEGATIVE),
            (-1.0, SentimentCategory.NEGATIVE),
        ],
    )
    def test_thresholds_are_inclusive(self, compound, expected):
        assert categorize(compound) == expected


class TestScore:
    def test_positive_text(self, scorer):
        scored = scorer.score("I love this wonderful library, it is great!")

        assert scored.category == SentimentCategory.POSITIVE
        assert 0 < scored.compound <= 1
        assert scored.confidence == abs(scored.compound)

    def test_negative_text(self, scorer):
        scored = scorer.score("This is terrible and I hate it")

        assert scored.category == SentimentCategory.NEGATIVE
        assert -1 <= scored.compound < 0

    @pytest.mark.parametrize("text", ["", "   ", None, 42])
    def test_empty_input_is_neutral(self, scorer, text):
        scored = scorer.score(text)

        assert scored.compound == 0.0
        assert scored.confidence == 0.0
        assert scored.category == SentimentCategory.NEUTRAL

    def test_proportions_sum_to_one(self, scorer):
        scored = scorer.score("Good news, but the weather is awful")

        assert scored.positive + scored.neutral + scored.negative == pytest.approx(1.0)
        assert all(0 <= p <= 1 for p in (scored.positive, scored.neutral, scored.negative))


class TestBlend:
    def test_weighted_sum(self):
        blended = SentimentScorer.blend([(result(0.5), 0.4), (result(-0.5), 0.3), (result(1.0), 0.3)])
        assert blended == pytest.approx(0.5 * 0.4 - 0.5 * 0.3 + 1.0 * 0.3)

    def test_clamped_to_bounds(self):
        assert SentimentScorer.blend([(result(1.0), 1.0), (result(1.0), 1.0)]) == 1.0
        assert SentimentScorer.blend([(result(-1.0), 1.0), (result(-1.0), 1.0)]) == -1.0

    def test_blend_result_category_from_blended_compound(self):
        blended = SentimentScorer.blend_result([(result(0.1), 0.5), (result(0.0), 0.5)])

        assert blended.compound == pytest.approx(0.05)
        assert blended.category == SentimentCategory.POSITIVE
        assert blended.positive == pytest.approx(0.2)

    def test_blend_result_of_nothing_is_neutral(self):
        assert SentimentScorer.blend_result([]).compound == 0.0


class TestScoreComments:
    def test_average_and_distribution(self, scorer):
        comments = scorer.score_comments(
            ["I love it, fantastic!", "Awful, I hate this", "The table is brown", "", "Great job"]
        )

        assert comments.count == 4
        assert comments.distribution == {"positive": 2, "neutral": 1, "negative": 1}
        assert -1 <= comments.overall.compound <= 1

    def test_no_comments(self, scorer):
        comments = scorer.score_comments([])

        assert comments.count == 0
        assert comments.overall.compound == 0.0
        assert comments.distribution == {"positive": 0, "neutral": 0, "negative": 0}


class TestSentimentResult:
    def test_breakdown_rounded(self):
        breakdown = SentimentResult(compound=0.3, positive=0.12345, neutral=0.8, negative=0.07655).breakdown()
        assert breakdown == {"positive": 0.123, "neutral": 0.8, "negative": 0.077}
