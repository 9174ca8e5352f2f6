"""Per-article sentiment reconciliation and label counts.

Three sources can label a news article, in order of preference:

1. the upstream ``analyzedArticles`` list, matched to the batch by title;
2. the upstream overall verdict (label + confidence), spread over the
   articles the list did not cover;
3. the local keyword classifier in :mod:`stock_insight.sentiment_classifier`.

Spreading the overall verdict is deterministic by default: with ``n``
unmatched articles and confidence ``c`` the first ``ceil(n * c)`` of them, in
batch order, take the dominant label and the rest are NEUTRAL.  The
probabilistic mode instead draws each unmatched article independently with
probability ``c``.  Either way the returned counts always add up to the
number of articles.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union

from .logging_utils import get_logger
from .models import (
    AnalyzedArticle,
    ArticleSentiment,
    NewsArticle,
    OverallSentiment,
    SentimentCounts,
    SentimentLabel,
)
from .sentiment_classifier import NEUTRAL_CONFIDENCE, classify_news_article

log = get_logger("sentiment_aggregator")


class DistributionMode(str, Enum):
    DETERMINISTIC = "deterministic"
    PROBABILISTIC = "probabilistic"


@dataclass(frozen=True)
class SentimentBreakdown:
    """Labelled articles (batch order) plus their label counts."""

    articles: List[ArticleSentiment]
    counts: SentimentCounts


def match_analyzed_article(
    article: NewsArticle, analyzed: Sequence[AnalyzedArticle]
) -> Optional[AnalyzedArticle]:
    """Find the upstream verdict for ``article``.

    Exact title match first, then case-insensitive containment in either
    direction.  Blank titles never match.
    """
    title = article.title.strip()
    if not title:
        return None
    for candidate in analyzed:
        if candidate.title.strip() == title:
            return candidate
    lowered = title.lower()
    for candidate in analyzed:
        other = candidate.title.strip().lower()
        if other and (other in lowered or lowered in other):
            return candidate
    return None


def dominant_count(n: int, confidence: float) -> int:
    """``ceil(n * confidence)`` clamped to ``[0, n]``."""
    if n <= 0:
        return 0
    c = max(0.0, min(1.0, confidence))
    # 10 * 0.7 == 7.000000000000001 in binary floating point
    return min(n, math.ceil(round(n * c, 9)))


def distribute_unmatched(
    articles: Sequence[NewsArticle],
    overall: OverallSentiment,
    mode: Union[DistributionMode, str] = DistributionMode.DETERMINISTIC,
    rng: Optional[random.Random] = None,
) -> List[ArticleSentiment]:
    """Spread the overall verdict over articles with no upstream match."""
    mode = DistributionMode(mode)
    dominant = overall.label
    results: List[ArticleSentiment] = []

    if mode is DistributionMode.PROBABILISTIC:
        draw = rng or random.Random()
        for article in articles:
            hit = draw.random() < overall.confidence
            results.append(_distributed(article, dominant if hit else None, overall))
        return results

    cutoff = dominant_count(len(articles), overall.confidence)
    for idx, article in enumerate(articles):
        results.append(_distributed(article, dominant if idx < cutoff else None, overall))
    return results


def _distributed(
    article: NewsArticle, label: Optional[SentimentLabel], overall: OverallSentiment
) -> ArticleSentiment:
    # label None: outside the dominant share
    if label is None:
        return ArticleSentiment(
            article=article,
            label=SentimentLabel.NEUTRAL,
            confidence=NEUTRAL_CONFIDENCE,
            source="distributed",
        )
    return ArticleSentiment(
        article=article, label=label, confidence=overall.confidence, source="distributed"
    )


def aggregate_news_sentiment(
    articles: Sequence[NewsArticle],
    analyzed: Optional[Sequence[AnalyzedArticle]] = None,
    overall: Optional[OverallSentiment] = None,
    mode: Union[DistributionMode, str] = DistributionMode.DETERMINISTIC,
    rng: Optional[random.Random] = None,
) -> SentimentBreakdown:
    """Label every article and count the labels.

    Parameters
    ----------
    articles : sequence of NewsArticle
        The news batch, in display order.
    analyzed : sequence of AnalyzedArticle, optional
        Upstream per-article verdicts.
    overall : OverallSentiment, optional
        Upstream verdict for the whole batch.
    mode : DistributionMode
        How ``overall`` is spread over unmatched articles.
    rng : random.Random, optional
        Source of draws for the probabilistic mode.

    Returns
    -------
    SentimentBreakdown
        One ArticleSentiment per input article and the label counts.
    """
    labelled: List[Optional[ArticleSentiment]] = [None] * len(articles)
    unmatched: List[int] = []

    for idx, article in enumerate(articles):
        match = match_analyzed_article(article, analyzed) if analyzed else None
        if match is None:
            unmatched.append(idx)
            continue
        if match.confidence is not None:
            confidence = match.confidence
        elif overall is not None:
            confidence = overall.confidence
        else:
            confidence = NEUTRAL_CONFIDENCE
        labelled[idx] = ArticleSentiment(
            article=article, label=match.sentiment, confidence=confidence, source="upstream"
        )

    pending = [articles[i] for i in unmatched]
    if overall is not None:
        assigned = distribute_unmatched(pending, overall, mode=mode, rng=rng)
    else:
        assigned = [classify_news_article(a) for a in pending]
    for idx, sentiment in zip(unmatched, assigned):
        labelled[idx] = sentiment

    results = [s for s in labelled if s is not None]
    counts = SentimentCounts.from_labels(s.label for s in results)
    log.debug(
        "news_sentiment n=%d matched=%d positive=%d negative=%d neutral=%d",
        len(results),
        len(results) - len(unmatched),
        counts.positive,
        counts.negative,
        counts.neutral,
    )
    return SentimentBreakdown(articles=results, counts=counts)
