"""Numeric value extractor for AI-generated stock analysis text.

This module recovers quote figures from free-form narrative text:
- Current price ("current price is $142.50", first "$X" in the text)
- Percent change ("fell 3.2%", "2.5% gain", "change of -1.4%")
- Market cap ("market cap of $2.5 trillion", "$950B market cap")

Each field is resolved by an ordered list of patterns; the first pattern that
matches wins.  A field that no pattern matches is ``None``.  Extraction never
raises, and a pattern either contributes all of its capture groups or is
skipped.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from .logging_utils import get_logger
from .market_cap import normalize_market_cap
from .models import ExtractedFinancials

log = get_logger("numeric_extractor")


# ============================================================================
# Extraction Patterns
# ============================================================================

# "1,234.56", "142.50", "7"
_NUMBER = r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
_SIGNED = r"(?P<pct>[+-]?\d+(?:\.\d+)?)"
_UNIT = r"(trillion|billion|million|thousand|T|B|M|K)\b"

# Explicit statement: "current price is $X", "current stock price of $X"
CURRENT_PRICE_PATTERN = re.compile(
    r"current\s+(?:stock\s+|trading\s+)?price\s+(?:is|of)\s+\$\s*" + _NUMBER,
    re.IGNORECASE,
)

DOLLAR_PATTERN = re.compile(r"\$\s*" + _NUMBER)

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

# Percent change, tried in order
CHANGE_PATTERNS = [
    # "fell 3.2%", "up 4%", "increased by 2%"
    re.compile(
        r"\b(up|down|increased|decreased|increase|decrease|gained|gain|rose|"
        r"lost|loss|fell|fall|dropping|plunged|surged|jumped|climbed)\s+"
        r"(?:(?:by|of)\s+)?" + _SIGNED + r"\s*%",
        re.IGNORECASE,
    ),
    # "3% loss", "3% decline", "2.5% gain", "1% up"
    re.compile(
        _SIGNED + r"\s*%\s+(increase|decrease|decline|gain|loss|rise|fall|up|down)\b",
        re.IGNORECASE,
    ),
    re.compile(r"change\s+of\s+" + _SIGNED + r"\s*%", re.IGNORECASE),
    re.compile(r"changed\s+by\s+" + _SIGNED + r"\s*%", re.IGNORECASE),
    re.compile(r"percentage\s+change\s+of\s+" + _SIGNED + r"\s*%", re.IGNORECASE),
]

NEGATIVE_DIRECTION = re.compile(
    r"\b(down|decreased|decrease|decline|lost|loss|fell|fall|dropping|plunged)\b",
    re.IGNORECASE,
)

# Market cap, tried in order
MARKET_CAP_PATTERNS = [
    re.compile(
        r"market\s+cap(?:italization)?\s+of\s+\$?\s*" + _NUMBER + r"\s*" + _UNIT,
        re.IGNORECASE,
    ),
    re.compile(
        r"market\s+cap(?:italization)?\s+(?:is|at)\s+(?:at\s+)?\$?\s*"
        + _NUMBER
        + r"\s*"
        + _UNIT,
        re.IGNORECASE,
    ),
    re.compile(
        r"\$?\s*" + _NUMBER + r"\s*" + _UNIT + r"\s+market\s+cap",
        re.IGNORECASE,
    ),
]


# ============================================================================
# Extraction Functions
# ============================================================================


def _parse_number(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def extract_price(text: Optional[str]) -> Optional[float]:
    """Extract the current share price from analysis text.

    Tries the explicit "current price is $X" phrasing, then the first dollar
    amount in the first paragraph, then the first dollar amount anywhere.
    """
    if not text:
        return None

    match = CURRENT_PRICE_PATTERN.search(text)
    if match:
        price = _parse_number(match.group(1))
        if price is not None:
            log.debug("price_explicit value=%s", price)
            return price

    first_paragraph = PARAGRAPH_BREAK.split(text, maxsplit=1)[0]
    for scope in (first_paragraph, text):
        match = DOLLAR_PATTERN.search(scope)
        if match:
            price = _parse_number(match.group(1))
            if price is not None:
                log.debug("price_dollar value=%s", price)
                return price

    return None


def extract_change_percent(text: Optional[str]) -> Optional[float]:
    """Extract a signed percent change.

    An explicit sign on the number wins.  Otherwise a negative direction word
    in the matched phrase ("fell", "down", "loss", ...) makes the value
    negative; anything else leaves it positive.
    """
    if not text:
        return None

    for pattern in CHANGE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        raw = match.group("pct")
        value = _parse_number(raw)
        if value is None:
            continue
        if raw[0] not in "+-" and NEGATIVE_DIRECTION.search(match.group(0)):
            value = -value
        log.debug("change_percent value=%s pattern=%s", value, pattern.pattern[:40])
        return value

    return None


def extract_market_cap_parts(text: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return the raw ``(number, unit)`` pair of the first market-cap phrase."""
    if not text:
        return None
    for pattern in MARKET_CAP_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1), match.group(2)
    return None


def extract_market_cap(text: Optional[str]) -> Optional[float]:
    """Extract a market cap in plain currency units."""
    parts = extract_market_cap_parts(text)
    if parts is None:
        return None
    value = normalize_market_cap(*parts)
    if value is not None:
        log.debug("market_cap value=%s unit=%s", value, parts[1])
    return value


def extract_financials(text: Optional[str]) -> ExtractedFinancials:
    """Extract price, percent change and market cap from analysis text.

    Parameters
    ----------
    text : str
        Free-form analysis text; may be empty or None.

    Returns
    -------
    ExtractedFinancials
        Extracted figures, with None for anything not found.
    """
    if not text:
        return ExtractedFinancials()

    financials = ExtractedFinancials(
        price=extract_price(text),
        change_percent=extract_change_percent(text),
        market_cap=extract_market_cap(text),
    )
    log.debug(
        "extracted price=%s change_percent=%s market_cap=%s",
        financials.price,
        financials.change_percent,
        financials.market_cap,
    )
    return financials
