"""Keyword-based sentiment classifier for news articles.

Used when no upstream verdict exists for an article.  The classifier counts
positive and negative indicator words in the title and content, weighting
title hits double, and turns the two scores into a label and a confidence.

Matching is plain case-insensitive substring containment: no stemming and no
word boundaries, so "gain" also matches "gains" and "regained".  The scoring
is deterministic; the same input always gives the same label and confidence.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .logging_utils import get_logger
from .models import ArticleSentiment, NewsArticle, OverallSentiment, SentimentLabel

log = get_logger("sentiment_classifier")

__all__ = [
    "POSITIVE_INDICATORS",
    "NEGATIVE_INDICATORS",
    "score_article",
    "classify_article",
    "classify_news_article",
    "classify_headlines",
]

POSITIVE_INDICATORS: Tuple[str, ...] = (
    "surge",
    "soar",
    "gain",
    "rise",
    "rising",
    "jump",
    "rally",
    "growth",
    "profit",
    "boost",
    "bullish",
    "beat",
    "exceed",
    "outperform",
    "upgrade",
    "record high",
    "strong",
    "success",
    "positive",
    "optimistic",
    "buy rating",
    "dividend increase",
    "expands",
    "breakthrough",
)

NEGATIVE_INDICATORS: Tuple[str, ...] = (
    "drop",
    "fall",
    "decline",
    "plunge",
    "sink",
    "tumble",
    "crash",
    "slump",
    "loss",
    "miss",
    "weak",
    "bearish",
    "downgrade",
    "underperform",
    "negative",
    "concern",
    "failed",
    "lawsuit",
    "investigation",
    "layoff",
    "recall",
    "warning",
    "sell rating",
    "cuts guidance",
)

TITLE_WEIGHT = 2
CONTENT_WEIGHT = 1
LABEL_THRESHOLD = 0.3
MAX_CONFIDENCE = 0.95
NEUTRAL_CONFIDENCE = 0.5

# Batch headline fallback: net hits needed for a directional verdict
HEADLINE_MARGIN = 2
HEADLINE_CONFIDENCE = 0.6


def _weighted_hits(indicators: Iterable[str], title: str, content: str) -> int:
    score = 0
    for word in indicators:
        if word in title:
            score += TITLE_WEIGHT
        if word in content:
            score += CONTENT_WEIGHT
    return score


def score_article(title: Optional[str], content: Optional[str] = None) -> Tuple[int, int]:
    """Return ``(positive_score, negative_score)`` for an article."""
    t = (title or "").lower()
    c = (content or "").lower()
    return (
        _weighted_hits(POSITIVE_INDICATORS, t, c),
        _weighted_hits(NEGATIVE_INDICATORS, t, c),
    )


def classify_article(
    title: Optional[str], content: Optional[str] = None
) -> Tuple[SentimentLabel, float]:
    """Classify an article from its title and optional content.

    No indicator hits gives NEUTRAL at 0.5.  Otherwise the positive share of
    the total score is checked first: above 0.3 the article is POSITIVE with
    that share as confidence (capped at 0.95).  The negative share is checked
    next in the same way, and anything left is NEUTRAL at 0.5.
    """
    positive, negative = score_article(title, content)
    total = positive + negative
    if total == 0:
        return SentimentLabel.NEUTRAL, NEUTRAL_CONFIDENCE

    positive_ratio = positive / total
    negative_ratio = negative / total
    if positive_ratio > LABEL_THRESHOLD:
        return SentimentLabel.POSITIVE, min(MAX_CONFIDENCE, positive_ratio)
    if negative_ratio > LABEL_THRESHOLD:
        return SentimentLabel.NEGATIVE, min(MAX_CONFIDENCE, negative_ratio)
    return SentimentLabel.NEUTRAL, NEUTRAL_CONFIDENCE


def classify_news_article(article: NewsArticle) -> ArticleSentiment:
    label, confidence = classify_article(article.title, article.summary)
    return ArticleSentiment(
        article=article, label=label, confidence=confidence, source="local"
    )


def classify_headlines(titles: Iterable[Optional[str]]) -> OverallSentiment:
    """Coarse verdict for a whole batch of headlines.

    Every indicator found in a headline counts once.  The batch is POSITIVE
    or NEGATIVE only when one side leads by more than two hits; the verdict
    carries a fixed moderate confidence.
    """
    positive = negative = seen = 0
    for title in titles:
        t = (title or "").lower()
        seen += 1
        positive += sum(1 for w in POSITIVE_INDICATORS if w in t)
        negative += sum(1 for w in NEGATIVE_INDICATORS if w in t)

    if seen == 0:
        return OverallSentiment(label=SentimentLabel.NEUTRAL, confidence=NEUTRAL_CONFIDENCE)

    if positive > negative + HEADLINE_MARGIN:
        label = SentimentLabel.POSITIVE
    elif negative > positive + HEADLINE_MARGIN:
        label = SentimentLabel.NEGATIVE
    else:
        label = SentimentLabel.NEUTRAL
    log.debug(
        "headline_sentiment label=%s positive=%d negative=%d n=%d",
        label.value,
        positive,
        negative,
        seen,
    )
    return OverallSentiment(label=label, confidence=HEADLINE_CONFIDENCE)
