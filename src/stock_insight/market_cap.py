"""Market-cap normalization and display formatting.

Upstream sources disagree on how a market cap is expressed.  The analysis
API reports a number in *millions* (or, for some symbols, a suffixed string
such as ``"2.5T"``), the company overview reports plain dollars, and figures
mined from analysis text arrive as a ``(value, unit)`` pair.  This module
turns any of those into plain currency units (:func:`parse_market_cap`) or
into the API's millions base (:func:`to_millions`), and renders them back
for display.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional, Tuple

from .config import Settings, get_settings
from .logging_utils import get_logger

log = get_logger("market_cap")

UNIT_SCALARS = {
    "t": 1e12,
    "trillion": 1e12,
    "b": 1e9,
    "billion": 1e9,
    "m": 1e6,
    "million": 1e6,
    "k": 1e3,
    "thousand": 1e3,
}

MILLION = 1e6

_SUFFIX_RE = re.compile(r"(trillion|billion|million|thousand|[tbmk])\s*$", re.IGNORECASE)
_NON_NUMERIC_RE = re.compile(r"[^\d.]")


def unit_scalar(unit: Optional[str]) -> Optional[float]:
    """Return the multiplier for a magnitude suffix.

    A missing or blank unit scales by 1; an unrecognised unit returns None.
    """
    if unit is None or not str(unit).strip():
        return 1.0
    return UNIT_SCALARS.get(str(unit).strip().lower())


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
        return f if math.isfinite(f) else None
    digits = _NON_NUMERIC_RE.sub("", str(value))
    if not digits:
        return None
    try:
        return float(digits)
    except ValueError:
        # e.g. "1.2.3" after stripping
        return None


def normalize_market_cap(value: Any, unit: Optional[str] = None) -> Optional[float]:
    """Scale ``value`` by ``unit`` into plain currency units.

    Every character other than digits and the decimal point is stripped from
    ``value`` before parsing, so ``"1,500"`` and ``"$1500"`` are equivalent.
    Returns None for malformed input or an unknown unit.
    """
    number = _to_number(value)
    scalar = unit_scalar(unit)
    if number is None or scalar is None:
        return None
    return number * scalar


def split_market_cap_string(raw: str) -> Tuple[str, Optional[str]]:
    """Split ``"2.5T"`` into ``("2.5", "T")``; unsuffixed strings get ``None``."""
    text = (raw or "").strip()
    match = _SUFFIX_RE.search(text)
    if not match:
        return text, None
    return text[: match.start()].strip(), match.group(1)


def parse_market_cap(raw: Any) -> Optional[float]:
    """Parse any supported market-cap form into plain currency units.

    Parameters
    ----------
    raw : float | int | str | tuple
        A plain number (returned unscaled), a suffixed string such as
        ``"$1,234.5 billion"``, or a ``(value, unit)`` pair.

    Returns
    -------
    float or None
        Market cap in currency units, or None when unparseable.
    """
    if isinstance(raw, tuple) and len(raw) == 2:
        value = normalize_market_cap(raw[0], raw[1])
    elif isinstance(raw, str):
        numeric, unit = split_market_cap_string(raw)
        value = normalize_market_cap(numeric, unit)
    else:
        value = normalize_market_cap(raw)
    if value is None and raw is not None:
        log.debug("market_cap_unparsed raw=%r", raw)
    return value


def to_millions(raw: Any) -> Optional[float]:
    """Convert an API market-cap field to the API's millions base.

    Numbers and unsuffixed numeric strings are already in millions.  Suffixed
    strings carry their own magnitude and are rescaled.
    """
    if isinstance(raw, str):
        numeric, unit = split_market_cap_string(raw)
        if unit is None:
            return _to_number(numeric)
        value = normalize_market_cap(numeric, unit)
        return value / MILLION if value is not None else None
    return _to_number(raw)


def _positive_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f) or f <= 0:
        return None
    return f


def format_market_cap(market_cap: Any) -> str:
    """Render a market cap expressed in millions.

    >>> format_market_cap(1500)
    '$1.50 B'
    """
    value = _positive_float(market_cap)
    if value is None:
        return "N/A"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f} T"
    if value > 1000:
        return f"${value / 1000:.2f} B"
    if value > 1:
        return f"${value:.2f} M"
    return f"${value * 1000:.2f} K"


def format_market_cap_usd(market_cap: Any) -> str:
    """Render a market cap expressed in plain dollars (peer tables)."""
    value = _positive_float(market_cap)
    if value is None:
        return "N/A"
    if value >= 1e12:
        return f"${value / 1e12:.2f}T"
    if value >= 1e9:
        return f"${value / 1e9:.2f}B"
    if value >= 1e6:
        return f"${value / 1e6:.2f}M"
    if value >= 1e3:
        return f"${value / 1e3:.2f}K"
    return f"${value:.2f}"


def default_market_cap(symbol: Optional[str], settings: Optional[Settings] = None) -> float:
    """Fallback market cap (millions) when no source provides one."""
    s = settings or get_settings()
    sym = (symbol or "").strip().upper()
    if sym and sym in s.mega_cap_symbols:
        return s.mega_cap_default_market_cap
    return s.default_market_cap
