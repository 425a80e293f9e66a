# app/services/sentiment.py
"""
Lexicon-based sentiment scoring.

Wraps VADER to produce a bounded compound score in [-1, 1] with
positive/neutral/negative proportions, and blends several scored sources
into one compound with fixed per-call-site weights.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from app.constants import SentimentThresholds

logger = logging.getLogger(__name__)


class SentimentCategory(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


def categorize(compound: float) -> SentimentCategory:
    """Thresholds are inclusive: 0.05 is Positive, -0.05 is Negative."""
    if compound >= SentimentThresholds.POSITIVE:
        return SentimentCategory.POSITIVE
    if compound <= SentimentThresholds.NEGATIVE:
        return SentimentCategory.NEGATIVE
    return SentimentCategory.NEUTRAL


def _clamp_compound(value: float) -> float:
    return max(-1.0, min(1.0, value))


@dataclass(frozen=True)
class SentimentResult:
    """Scored text. `category` and `confidence` are derived from `compound`."""

    compound: float
    positive: float
    neutral: float
    negative: float

    @property
    def category(self) -> SentimentCategory:
        return categorize(self.compound)

    @property
    def confidence(self) -> float:
        return abs(self.compound)

    @classmethod
    def neutral_result(cls) -> "SentimentResult":
        return cls(compound=0.0, positive=0.0, neutral=1.0, negative=0.0)

    def breakdown(self) -> dict[str, float]:
        return {
            "positive": round(self.positive, 3),
            "neutral": round(self.neutral, 3),
            "negative": round(self.negative, 3),
        }


@dataclass(frozen=True)
class CommentSentiment:
    """Average sentiment over a set of comments plus per-comment category counts."""

    overall: SentimentResult
    distribution: dict[str, int]
    count: int


class SentimentScorer:
    """
    Score and blend text sentiment.

    The VADER analyzer loads its lexicon once per scorer; share one instance.
    """

    def __init__(self, analyzer: SentimentIntensityAnalyzer | None = None):
        self._analyzer = analyzer or SentimentIntensityAnalyzer()

    def score(self, text: Any) -> SentimentResult:
        """Empty or non-text input yields a neutral, zero-confidence result."""
        if not isinstance(text, str) or not text.strip():
            return SentimentResult.neutral_result()

        scores = self._analyzer.polarity_scores(text)
        positive, neutral, negative = scores["pos"], scores["neu"], scores["neg"]
        total = positive + neutral + negative
        if total <= 0:
            return SentimentResult.neutral_result()

        return SentimentResult(
            compound=_clamp_compound(scores["compound"]),
            positive=positive / total,
            neutral=neutral / total,
            negative=negative / total,
        )

    @staticmethod
    def blend(weighted: Sequence[tuple[SentimentResult, float]]) -> float:
        """Weighted sum of compounds, clamped to [-1, 1]."""
        return _clamp_compound(sum(result.compound * weight for result, weight in weighted))

    @classmethod
    def blend_result(cls, weighted: Sequence[tuple[SentimentResult, float]]) -> SentimentResult:
        """
        Blended compound with weight-averaged proportions.

        The category of the result is taken from the blended compound, using
        the same thresholds as a single text.
        """
        total_weight = sum(weight for _, weight in weighted)
        if not weighted or total_weight <= 0:
            return SentimentResult.neutral_result()
        return SentimentResult(
            compound=cls.blend(weighted),
            positive=sum(r.positive * w for r, w in weighted) / total_weight,
            neutral=sum(r.neutral * w for r, w in weighted) / total_weight,
            negative=sum(r.negative * w for r, w in weighted) / total_weight,
        )

    @staticmethod
    def average(results: Sequence[SentimentResult]) -> SentimentResult:
        """Mean of compounds and proportions. Empty input is neutral."""
        if not results:
            return SentimentResult.neutral_result()
        n = len(results)
        return SentimentResult(
            compound=_clamp_compound(sum(r.compound for r in results) / n),
            positive=sum(r.positive for r in results) / n,
            neutral=sum(r.neutral for r in results) / n,
            negative=sum(r.negative for r in results) / n,
        )

    def score_many(self, texts: Iterable[Any]) -> list[SentimentResult]:
        return [self.score(text) for text in texts if isinstance(text, str) and text.strip()]

    def score_comments(self, texts: Iterable[Any]) -> CommentSentiment:
        """Score each comment, then average and count per-comment categories."""
        results = self.score_many(texts)
        distribution = {category.value.lower(): 0 for category in SentimentCategory}
        for result in results:
            distribution[result.category.value.lower()] += 1
        return CommentSentiment(overall=self.average(results), distribution=distribution, count=len(results))
