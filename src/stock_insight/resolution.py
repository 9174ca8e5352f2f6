"""Precedence rules that pick one final value per quote field.

Order per field: caller context, then the API payload, then figures mined
from the analysis text.  Market cap has two more fallbacks (the company
overview and a per-symbol default), so it is never unknown; the other fields
may resolve to None.
"""

from __future__ import annotations

from typing import Any, Optional

from .config import Settings, get_settings
from .logging_utils import get_logger
from .market_cap import MILLION, default_market_cap, to_millions
from .models import AnalysisPayload, ExtractedFinancials, ResolvedValues, StockSnapshot

log = get_logger("resolution")


def first_present(*candidates: Any) -> Any:
    """Return the first candidate that is not None (None if all are)."""
    for value in candidates:
        if value is not None:
            return value
    return None


def _positive(value: Optional[float]) -> Optional[float]:
    return value if value is not None and value > 0 else None


def derived_change_percent(payload: AnalysisPayload) -> Optional[float]:
    """Percent change against ``previousClose``.

    Uses the API ``change`` when present, else ``price - previousClose``.
    A missing or zero previous close gives None.
    """
    if not payload.previous_close:
        return None
    change = payload.change
    if change is None and payload.price is not None:
        change = payload.price - payload.previous_close
    if change is None:
        return None
    return change / payload.previous_close * 100


def resolve_market_cap(
    payload: AnalysisPayload,
    context: Optional[StockSnapshot],
    extracted: ExtractedFinancials,
    symbol: Optional[str],
    settings: Optional[Settings] = None,
) -> float:
    """Market cap in millions; only positive candidates count."""
    mined = extracted.market_cap / MILLION if extracted.market_cap else None
    overview = payload.overview_market_cap / MILLION if payload.overview_market_cap else None
    value = first_present(
        _positive(context.market_cap if context else None),
        _positive(to_millions(payload.market_cap)),
        _positive(mined),
        _positive(overview),
    )
    if value is None:
        value = default_market_cap(symbol, settings or get_settings())
        log.debug("market_cap_default symbol=%s value=%s", symbol, value)
    return value


def resolve_values(
    payload: AnalysisPayload,
    context: Optional[StockSnapshot] = None,
    extracted: Optional[ExtractedFinancials] = None,
    symbol: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ResolvedValues:
    extracted = extracted or ExtractedFinancials()
    symbol = first_present(symbol, context.symbol if context else None, payload.symbol)
    return ResolvedValues(
        price=first_present(
            context.price if context else None,
            payload.price,
            extracted.price,
        ),
        change_percent=first_present(
            context.change_percent if context else None,
            payload.change_percent,
            derived_change_percent(payload),
            extracted.change_percent,
        ),
        market_cap=resolve_market_cap(payload, context, extracted, symbol, settings),
        volume=first_present(context.volume if context else None, payload.volume),
    )
