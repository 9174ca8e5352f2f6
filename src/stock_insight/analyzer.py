"""Turn one analysis payload into display-ready facts.

:func:`analyze_payload` is total: any input, including ``None`` or an empty
mapping, yields a complete :class:`~stock_insight.models.AnalysisResult`
with None or defaults where data is absent.  It performs no I/O and keeps no
state between calls.
"""

from __future__ import annotations

import random
from typing import Any, Mapping, Optional, Union

from .config import Settings, get_settings
from .llm_response import overall_from_news_block, summarize_news_sentiment
from .logging_utils import get_logger
from .market_cap import format_market_cap
from .models import AnalysisPayload, AnalysisResult, StockSnapshot
from .numeric_extractor import extract_financials
from .resolution import first_present, resolve_values
from .sentiment_aggregator import DistributionMode, aggregate_news_sentiment
from .sentiment_classifier import classify_headlines

log = get_logger("analyzer")


def analyze_payload(
    raw: Any,
    context: Optional[Union[StockSnapshot, Mapping[str, Any]]] = None,
    symbol: Optional[str] = None,
    settings: Optional[Settings] = None,
    mode: Optional[Union[DistributionMode, str]] = None,
) -> AnalysisResult:
    """Analyze a ``GET /analysis/{symbol}`` response.

    Parameters
    ----------
    raw : mapping or AnalysisPayload
        The backend response; malformed shapes are tolerated.
    context : StockSnapshot or mapping, optional
        Previously known quote; its values win over the payload.
    symbol : str, optional
        Ticker; used for the market-cap default and the summary text.
    settings : Settings, optional
        Defaults to the process-wide settings.
    mode : DistributionMode or str, optional
        Overrides ``settings.distribution_mode``.

    Returns
    -------
    AnalysisResult
    """
    s = settings or get_settings()
    payload = AnalysisPayload.from_raw(raw)
    snapshot = StockSnapshot.from_raw(context)
    sym = first_present(symbol, snapshot.symbol if snapshot else None, payload.symbol)
    if sym:
        sym = sym.strip().upper()

    extracted = extract_financials(payload.ai_analysis)
    resolved = resolve_values(payload, snapshot, extracted, symbol=sym, settings=s)

    block = payload.news_sentiment
    upstream_overall = overall_from_news_block(block)
    dist_mode = DistributionMode(mode or s.distribution_mode)
    rng = random.Random(s.random_seed) if dist_mode is DistributionMode.PROBABILISTIC else None
    breakdown = aggregate_news_sentiment(
        payload.recent_news,
        analyzed=block.analyzed_articles if block else None,
        overall=upstream_overall,
        mode=dist_mode,
        rng=rng,
    )

    overall = upstream_overall
    if overall is None and payload.recent_news:
        overall = classify_headlines(a.title for a in payload.recent_news)
    summary = (
        summarize_news_sentiment(sym, len(payload.recent_news), overall) if overall else ""
    )

    result = AnalysisResult(
        symbol=sym,
        extracted=extracted,
        resolved=resolved,
        market_cap_display=format_market_cap(resolved.market_cap),
        article_sentiments=breakdown.articles,
        counts=breakdown.counts,
        overall_sentiment=overall,
        news_summary=summary,
    )
    log.info(
        "analysis_complete symbol=%s price=%s change_percent=%s market_cap=%s "
        "articles=%d positive=%d negative=%d neutral=%d",
        sym,
        resolved.price,
        resolved.change_percent,
        result.market_cap_display,
        breakdown.counts.total,
        breakdown.counts.positive,
        breakdown.counts.negative,
        breakdown.counts.neutral,
    )
    return result
