import random

import pytest

from stock_insight.models import (
    AnalyzedArticle,
    NewsArticle,
    OverallSentiment,
    SentimentLabel,
)
from stock_insight.sentiment_aggregator import (
    DistributionMode,
    aggregate_news_sentiment,
    distribute_unmatched,
    dominant_count,
    match_analyzed_article,
)

P, N, Z = SentimentLabel.POSITIVE, SentimentLabel.NEGATIVE, SentimentLabel.NEUTRAL


def _articles(raw):
    return [NewsArticle.from_raw(r) for r in raw]


@pytest.mark.parametrize(
    "n,confidence,expected",
    [
        (10, 0.7, 7),
        (5, 0.8, 4),
        (3, 0.5, 2),
        (0, 0.9, 0),
        (4, 1.5, 4),
        (4, -1.0, 0),
        (1, 0.01, 1),
    ],
)
def test_dominant_count(n, confidence, expected):
    assert dominant_count(n, confidence) == expected


def test_distribute_positive_prior_over_five(news_batch):
    overall = OverallSentiment(label="positive", confidence=0.8)
    result = aggregate_news_sentiment(_articles(news_batch), overall=overall)

    assert [a.label for a in result.articles] == [P, P, P, P, Z]
    assert [a.confidence for a in result.articles] == [0.8, 0.8, 0.8, 0.8, 0.5]
    assert {a.source for a in result.articles} == {"distributed"}
    assert (result.counts.positive, result.counts.negative, result.counts.neutral) == (4, 0, 1)
    assert result.counts.total == 5


def test_exact_title_match_uses_upstream_verdict():
    articles = _articles([{"title": "Chipmaker misses estimates"}])
    analyzed = [AnalyzedArticle(title="Chipmaker misses estimates", sentiment="NEGATIVE", confidence=0.9)]
    result = aggregate_news_sentiment(articles, analyzed=analyzed)

    only = result.articles[0]
    assert only.label is N
    assert only.confidence == 0.9
    assert only.source == "upstream"


def test_substring_match_is_case_insensitive():
    article = NewsArticle(title="Apple Beats Estimates In Q3 Report")
    analyzed = [
        AnalyzedArticle(title="Unrelated headline", sentiment="negative"),
        AnalyzedArticle(title="apple beats estimates", sentiment="positive"),
    ]
    match = match_analyzed_article(article, analyzed)
    assert match is not None
    assert match.sentiment is P


def test_exact_match_preferred_over_containment():
    article = NewsArticle(title="Fed holds rates")
    analyzed = [
        AnalyzedArticle(title="Fed holds rates steady again", sentiment="negative"),
        AnalyzedArticle(title="Fed holds rates", sentiment="positive"),
    ]
    assert match_analyzed_article(article, analyzed).sentiment is P


def test_blank_titles_never_match():
    assert match_analyzed_article(NewsArticle(), [AnalyzedArticle(title="")]) is None
    assert match_analyzed_article(NewsArticle(title="Anything"), [AnalyzedArticle(title="  ")]) is None


def test_matched_without_confidence_falls_back():
    articles = _articles([{"title": "Rates unchanged"}])
    analyzed = [AnalyzedArticle(title="Rates unchanged", sentiment="neutral")]

    with_prior = aggregate_news_sentiment(
        articles, analyzed=analyzed, overall=OverallSentiment(label="negative", confidence=0.65)
    )
    assert with_prior.articles[0].confidence == 0.65
    assert with_prior.articles[0].label is Z

    without_prior = aggregate_news_sentiment(articles, analyzed=analyzed)
    assert without_prior.articles[0].confidence == 0.5


def test_mixed_matched_and_distributed():
    articles = _articles(
        [{"title": "Guidance cut"}, {"title": "Note A"}, {"title": "Note B"}, {"title": "Note C"}]
    )
    analyzed = [AnalyzedArticle(title="Guidance cut", sentiment="negative", confidence=0.9)]
    overall = OverallSentiment(label="positive", confidence=0.5)
    result = aggregate_news_sentiment(articles, analyzed=analyzed, overall=overall)

    # ceil(3 * 0.5) == 2 of the three unmatched take the prior
    assert [a.label for a in result.articles] == [N, P, P, Z]
    assert [a.source for a in result.articles] == ["upstream", "distributed", "distributed", "distributed"]
    assert (result.counts.positive, result.counts.negative, result.counts.neutral) == (2, 1, 1)


def test_no_prior_uses_local_classifier():
    articles = _articles(
        [
            {"title": "Shares surge after earnings beat"},
            {"title": "Stock plunges on recall"},
            {"title": "Board meeting scheduled"},
        ]
    )
    result = aggregate_news_sentiment(articles)

    assert [a.label for a in result.articles] == [P, N, Z]
    assert {a.source for a in result.articles} == {"local"}
    assert result.counts.total == 3


def test_order_is_preserved():
    articles = _articles([{"title": f"Item {i}"} for i in range(6)])
    result = aggregate_news_sentiment(articles, overall=OverallSentiment(label="negative", confidence=0.3))
    assert [a.article.title for a in result.articles] == [f"Item {i}" for i in range(6)]
    assert [a.label for a in result.articles] == [N, N, Z, Z, Z, Z]


def test_empty_batch():
    result = aggregate_news_sentiment([], overall=OverallSentiment(label="positive", confidence=0.9))
    assert result.articles == []
    assert result.counts.total == 0


def test_probabilistic_full_confidence_is_all_dominant(news_batch):
    overall = OverallSentiment(label="negative", confidence=1.0)
    out = distribute_unmatched(
        _articles(news_batch), overall, mode=DistributionMode.PROBABILISTIC, rng=random.Random(7)
    )
    assert [a.label for a in out] == [N] * 5


def test_probabilistic_zero_confidence_is_all_neutral(news_batch):
    overall = OverallSentiment(label="positive", confidence=0.0)
    out = distribute_unmatched(_articles(news_batch), overall, mode="probabilistic", rng=random.Random(7))
    assert [a.label for a in out] == [Z] * 5
    assert all(a.confidence == 0.5 for a in out)


def test_probabilistic_is_reproducible_with_seed(news_batch):
    articles = _articles(news_batch * 4)
    overall = OverallSentiment(label="positive", confidence=0.6)

    first = aggregate_news_sentiment(
        articles, overall=overall, mode="probabilistic", rng=random.Random(42)
    )
    second = aggregate_news_sentiment(
        articles, overall=overall, mode="probabilistic", rng=random.Random(42)
    )
    assert [a.label for a in first.articles] == [a.label for a in second.articles]
    assert first.counts.total == len(articles)
    assert first.counts.negative == 0


def test_unknown_mode_rejected(news_batch):
    with pytest.raises(ValueError):
        distribute_unmatched(_articles(news_batch), OverallSentiment(), mode="sometimes")
