"""Typed data model for analysis payloads and derived sentiment facts.

The backend payload is loosely shaped: any field may be missing, numbers
sometimes arrive as strings and market caps sometimes carry a magnitude
suffix.  :meth:`AnalysisPayload.from_raw` is the single ingestion boundary;
everything downstream works with the validated models defined here and never
re-checks the raw JSON.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from dateutil import parser as _dtparse
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from .logging_utils import get_logger

log = get_logger("models")


def coerce_float(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None``.

    Accepts ints, floats and numeric strings (thousands separators allowed).
    Booleans, blanks, NaN/inf and anything unparsable map to ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
    elif isinstance(value, str):
        s = value.strip().replace(",", "")
        if not s:
            return None
        try:
            f = float(s)
        except ValueError:
            return None
    else:
        return None
    return f if math.isfinite(f) else None


def text_or_default(value: Any, default: Optional[str]) -> Optional[str]:
    """Blank or missing text becomes ``default``; non-strings are stringified."""
    if value is None:
        return default
    if not isinstance(value, str):
        value = str(value)
    return value if value.strip() else default


# ============================================================================
# Sentiment
# ============================================================================


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @classmethod
    def from_text(cls, value: Any) -> "SentimentLabel":
        """Map free text (any case) to a label; unknown text is NEUTRAL."""
        if isinstance(value, SentimentLabel):
            return value
        text = str(value or "").strip().lower()
        if text == "positive":
            return cls.POSITIVE
        if text == "negative":
            return cls.NEGATIVE
        return cls.NEUTRAL


class OverallSentiment(BaseModel):
    """Upstream verdict for a whole news batch, used as a prior."""

    model_config = ConfigDict(frozen=True)

    label: SentimentLabel = SentimentLabel.NEUTRAL
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    @field_validator("label", mode="before")
    @classmethod
    def normalize_label(cls, v: Any) -> SentimentLabel:
        return SentimentLabel.from_text(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        f = coerce_float(v)
        if f is None:
            return 0.5
        return max(0.0, min(1.0, f))


class SentimentCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    positive: int = 0
    negative: int = 0
    neutral: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral

    @classmethod
    def from_labels(cls, labels: Iterable[SentimentLabel]) -> "SentimentCounts":
        counts = {label: 0 for label in SentimentLabel}
        for label in labels:
            counts[label] += 1
        return cls(
            positive=counts[SentimentLabel.POSITIVE],
            negative=counts[SentimentLabel.NEGATIVE],
            neutral=counts[SentimentLabel.NEUTRAL],
        )


# ============================================================================
# News
# ============================================================================


class NewsArticle(BaseModel):
    """A single news item as shown in the dashboard."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = ""
    url: str = "#"
    source: str = "Unknown source"
    date: Optional[str] = None
    summary: str = ""
    thumbnail: Optional[str] = None

    @field_validator("title", "url", "source", "date", "summary", "thumbnail", mode="before")
    @classmethod
    def blank_to_default(cls, v: Any, info: ValidationInfo) -> Optional[str]:
        return text_or_default(v, cls.model_fields[info.field_name].default)

    @classmethod
    def from_raw(cls, raw: Any) -> "NewsArticle":
        if not isinstance(raw, Mapping):
            return cls()
        data = dict(raw)
        if data.get("date") is None and data.get("publishedDate") is not None:
            data["date"] = data["publishedDate"]
        return cls.model_validate(data)

    @property
    def display_title(self) -> str:
        return self.title or "No title"

    @property
    def published_at(self) -> Optional[datetime]:
        """``date`` as an aware UTC datetime, or None when unparseable."""
        if not self.date:
            return None
        try:
            dt = _dtparse.parse(self.date)
        except (ValueError, OverflowError):
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)


class ArticleSentiment(BaseModel):
    model_config = ConfigDict(frozen=True)

    article: NewsArticle
    label: SentimentLabel
    confidence: float = Field(ge=0.0, le=1.0)
    # upstream | distributed | local
    source: str = "local"


class AnalyzedArticle(BaseModel):
    """Per-article verdict from the upstream ``analyzedArticles`` list."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = ""
    sentiment: SentimentLabel = SentimentLabel.NEUTRAL
    confidence: Optional[float] = None

    @field_validator("title", mode="before")
    @classmethod
    def blank_title(cls, v: Any) -> str:
        return text_or_default(v, "")

    @field_validator("sentiment", mode="before")
    @classmethod
    def normalize_label(cls, v: Any) -> SentimentLabel:
        return SentimentLabel.from_text(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> Optional[float]:
        f = coerce_float(v)
        return None if f is None else max(0.0, min(1.0, f))


class NewsSentimentBlock(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    sentiment: Optional[str] = None
    confidence: Optional[float] = None
    analyzed_articles: List[AnalyzedArticle] = Field(
        default_factory=list, alias="analyzedArticles"
    )

    @field_validator("sentiment", mode="before")
    @classmethod
    def blank_sentiment(cls, v: Any) -> Optional[str]:
        return text_or_default(v, None)

    @field_validator("confidence", mode="before")
    @classmethod
    def numeric_confidence(cls, v: Any) -> Optional[float]:
        return coerce_float(v)

    @field_validator("analyzed_articles", mode="before")
    @classmethod
    def keep_mappings(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        return [dict(a) for a in v if isinstance(a, Mapping)]


# ============================================================================
# Financials
# ============================================================================


class ExtractedFinancials(BaseModel):
    """Figures mined from free-form analysis text (market cap in plain units)."""

    model_config = ConfigDict(frozen=True)

    price: Optional[float] = None
    change_percent: Optional[float] = None
    market_cap: Optional[float] = None

    def is_empty(self) -> bool:
        return self.price is None and self.change_percent is None and self.market_cap is None


class StockSnapshot(BaseModel):
    """Previously known quote supplied by the caller; wins over the payload."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    symbol: Optional[str] = None
    price: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = Field(default=None, alias="changePercent")
    market_cap: Optional[float] = Field(default=None, alias="marketCap")
    volume: Optional[float] = None

    @field_validator("price", "change", "change_percent", "market_cap", "volume", mode="before")
    @classmethod
    def numeric_or_none(cls, v: Any) -> Optional[float]:
        return coerce_float(v)

    @field_validator("symbol", mode="before")
    @classmethod
    def blank_symbol(cls, v: Any) -> Optional[str]:
        return text_or_default(v, None)

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["StockSnapshot"]:
        if raw is None:
            return None
        if isinstance(raw, StockSnapshot):
            return raw
        if not isinstance(raw, Mapping):
            log.warning("context_not_mapping type=%s", type(raw).__name__)
            return None
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            log.warning("context_validation_failed errors=%d", e.error_count())
            return None


class AnalysisPayload(BaseModel):
    """Validated view of a ``GET /analysis/{symbol}`` response."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    symbol: Optional[str] = None
    price: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = Field(default=None, alias="changePercent")
    # Number in millions, or a suffixed string such as "2.5T"
    market_cap: Optional[Union[float, str]] = Field(default=None, alias="marketCap")
    previous_close: Optional[float] = Field(default=None, alias="previousClose")
    volume: Optional[float] = None
    ai_analysis: Optional[str] = Field(default=None, alias="aiAnalysis")
    recent_news: List[NewsArticle] = Field(default_factory=list, alias="recentNews")
    news_sentiment: Optional[NewsSentimentBlock] = Field(default=None, alias="newsSentiment")
    overview_market_cap: Optional[float] = None

    @field_validator("price", "change", "change_percent", "previous_close", "volume", mode="before")
    @classmethod
    def numeric_or_none(cls, v: Any) -> Optional[float]:
        return coerce_float(v)

    @field_validator("market_cap", mode="before")
    @classmethod
    def number_or_suffixed(cls, v: Any) -> Optional[Union[float, str]]:
        if isinstance(v, str):
            return v.strip() or None
        return coerce_float(v)

    @field_validator("symbol", "ai_analysis", mode="before")
    @classmethod
    def blank_text(cls, v: Any) -> Optional[str]:
        return text_or_default(v, None)

    @field_validator("recent_news", mode="before")
    @classmethod
    def articles_from_list(cls, v: Any) -> List[NewsArticle]:
        if not isinstance(v, list):
            if v is not None:
                log.warning("recent_news_not_list type=%s", type(v).__name__)
            return []
        articles = [NewsArticle.from_raw(a) for a in v if isinstance(a, Mapping)]
        dropped = len(v) - len(articles)
        if dropped:
            log.warning("recent_news_dropped count=%d kept=%d", dropped, len(articles))
        return articles

    @field_validator("news_sentiment", mode="before")
    @classmethod
    def mapping_or_none(cls, v: Any) -> Optional[Any]:
        if isinstance(v, NewsSentimentBlock):
            return v
        return dict(v) if isinstance(v, Mapping) else None

    @classmethod
    def from_raw(cls, raw: Any) -> "AnalysisPayload":
        """Validate an upstream JSON mapping; never raises."""
        if isinstance(raw, AnalysisPayload):
            return raw
        if not isinstance(raw, Mapping):
            if raw is not None:
                log.warning("payload_not_mapping type=%s", type(raw).__name__)
            return cls()
        data: Dict[str, Any] = dict(raw)
        overview = data.get("companyOverview")
        if isinstance(overview, Mapping):
            data["overview_market_cap"] = coerce_float(overview.get("MarketCapitalization"))
        else:
            data.pop("overview_market_cap", None)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            log.warning("payload_validation_failed errors=%d", e.error_count())
            return cls()


# ============================================================================
# Results
# ============================================================================


class ResolvedValues(BaseModel):
    """Final figures after precedence resolution (market cap in millions)."""

    model_config = ConfigDict(frozen=True)

    price: Optional[float] = None
    change_percent: Optional[float] = None
    market_cap: float
    volume: Optional[float] = None


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: Optional[str] = None
    extracted: ExtractedFinancials
    resolved: ResolvedValues
    market_cap_display: str
    article_sentiments: List[ArticleSentiment] = Field(default_factory=list)
    counts: SentimentCounts = Field(default_factory=SentimentCounts)
    overall_sentiment: Optional[OverallSentiment] = None
    news_summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """camelCase JSON-ready mapping for the presentation layer."""
        overall = self.overall_sentiment
        return {
            "symbol": self.symbol,
            "extracted": {
                "price": self.extracted.price,
                "changePercent": self.extracted.change_percent,
                "marketCap": self.extracted.market_cap,
            },
            "price": self.resolved.price,
            "changePercent": self.resolved.change_percent,
            "marketCap": self.resolved.market_cap,
            "volume": self.resolved.volume,
            "marketCapDisplay": self.market_cap_display,
            "newsSentiment": {
                "sentiment": overall.label.value if overall else None,
                "confidence": overall.confidence if overall else None,
                "positiveCount": self.counts.positive,
                "negativeCount": self.counts.negative,
                "neutralCount": self.counts.neutral,
                "summary": self.news_summary,
            },
            "articles": [
                {
                    "title": a.article.display_title,
                    "url": a.article.url,
                    "source": a.article.source,
                    "date": a.article.date,
                    "sentiment": a.label.value,
                    "confidence": round(a.confidence, 4),
                    "sentimentSource": a.source,
                }
                for a in self.article_sentiments
            ],
        }
