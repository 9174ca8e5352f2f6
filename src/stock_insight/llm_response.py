"""Parsing helpers for LLM news-sentiment verdicts.

The upstream analysis service prompts an LLM to answer in the form::

    SENTIMENT:POSITIVE CONFIDENCE:0.85
    ARTICLE BREAKDOWN: ...

Some backends pass that answer through verbatim as ``newsSentiment.sentiment``;
:func:`overall_from_news_block` parses it with :func:`parse_llm_sentiment`.
Models do not always comply, so the parser falls back to a plain
"positive"/"negative" mention, and finally to NEUTRAL.
:func:`extract_article_breakdown` is a helper for callers that show the
breakdown text; the analyzer itself does not use it.
"""

from __future__ import annotations

import re
from typing import Optional

from .logging_utils import get_logger
from .models import NewsSentimentBlock, OverallSentiment, SentimentLabel

log = get_logger("llm_response")

SENTIMENT_MARKER = re.compile(r"SENTIMENT:\s*\[?([A-Za-z]+)\]?")
CONFIDENCE_MARKER = re.compile(r"CONFIDENCE:\s*\[?(\S+?)\]?(?:\s|$)")
BREAKDOWN_MARKER = "ARTICLE BREAKDOWN:"

FALLBACK_CONFIDENCE = 0.7
DEFAULT_CONFIDENCE = 0.5


def parse_llm_sentiment(text: Optional[str]) -> OverallSentiment:
    """Parse a ``SENTIMENT:<label> CONFIDENCE:<float>`` answer."""
    if not text:
        return OverallSentiment(label=SentimentLabel.NEUTRAL, confidence=DEFAULT_CONFIDENCE)

    if "SENTIMENT:" in text and "CONFIDENCE:" in text:
        label = SentimentLabel.NEUTRAL
        confidence = DEFAULT_CONFIDENCE
        s_match = SENTIMENT_MARKER.search(text)
        if s_match:
            label = SentimentLabel.from_text(s_match.group(1))
        c_match = CONFIDENCE_MARKER.search(text)
        if c_match:
            raw = c_match.group(1)
            try:
                confidence = float(raw)
            except ValueError:
                log.warning("llm_confidence_unparsed value=%s", raw)
        return OverallSentiment(label=label, confidence=confidence)

    lowered = text.lower()
    if "positive" in lowered:
        return OverallSentiment(label=SentimentLabel.POSITIVE, confidence=FALLBACK_CONFIDENCE)
    if "negative" in lowered:
        return OverallSentiment(label=SentimentLabel.NEGATIVE, confidence=FALLBACK_CONFIDENCE)
    return OverallSentiment(label=SentimentLabel.NEUTRAL, confidence=DEFAULT_CONFIDENCE)


def extract_article_breakdown(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    idx = text.find(BREAKDOWN_MARKER)
    if idx == -1:
        return None
    return text[idx + len(BREAKDOWN_MARKER) :].strip() or None


def overall_from_news_block(block: Optional[NewsSentimentBlock]) -> Optional[OverallSentiment]:
    """Overall prior from an upstream ``newsSentiment`` block, if it has one."""
    if block is None or not block.sentiment:
        return None
    if "SENTIMENT:" in block.sentiment:
        # Raw LLM answer passed through by the backend
        parsed = parse_llm_sentiment(block.sentiment)
        if "CONFIDENCE:" in block.sentiment or block.confidence is None:
            return parsed
        return OverallSentiment(label=parsed.label, confidence=block.confidence)
    confidence = block.confidence if block.confidence is not None else DEFAULT_CONFIDENCE
    return OverallSentiment(label=block.sentiment, confidence=confidence)


def summarize_news_sentiment(
    symbol: Optional[str], article_count: int, overall: OverallSentiment
) -> str:
    """Human-readable paragraph describing the overall news sentiment."""
    name = symbol.upper() if symbol else "this stock"
    head = (
        f"Based on analysis of {article_count} recent news article"
        f"{'' if article_count == 1 else 's'}, the overall sentiment for {name} is "
        f"{overall.label.value} with {overall.confidence * 100:.1f}% confidence."
    )
    if overall.label is SentimentLabel.POSITIVE:
        tail = (
            f"The headlines suggest generally positive developments for {name}, "
            "which may have a favorable impact on the stock price."
        )
    elif overall.label is SentimentLabel.NEGATIVE:
        tail = (
            f"The headlines suggest concerning developments for {name}, "
            "which may have a negative impact on the stock price."
        )
    else:
        tail = (
            f"The headlines show mixed or balanced news for {name}, "
            "suggesting no clear directional impact on the stock price."
        )
    return f"{head} {tail}"
