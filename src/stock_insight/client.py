"""Thin HTTP client for the analysis backend.

Fetches ``GET {base_url}/analysis/{SYMBOL}`` and hands the JSON to
:func:`stock_insight.analyzer.analyze_payload`.  Network errors, non-200
responses and non-JSON bodies are logged and reported as ``None`` so callers
can show "No analysis available".  There are no retries here; callers that
refresh periodically simply try again on the next cycle.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

import requests

from .analyzer import analyze_payload
from .config import Settings, get_settings
from .logging_utils import get_logger
from .models import AnalysisResult, StockSnapshot

log = get_logger("client")

HEADERS = {"Accept": "application/json"}


class AnalysisClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.base_url = (base_url or self.settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else self.settings.api_timeout
        self.session = session or requests.Session()

    def analysis_url(self, symbol: str) -> str:
        return f"{self.base_url}/analysis/{symbol.strip().upper()}"

    def fetch_analysis(self, symbol: str) -> Optional[Dict[str, Any]]:
        """Return the raw analysis payload for ``symbol`` or None on failure."""
        if not symbol or not symbol.strip():
            return None
        url = self.analysis_url(symbol)
        try:
            resp = self.session.get(url, headers=HEADERS, timeout=self.timeout)
        except requests.RequestException as e:
            log.warning("analysis_request_error symbol=%s err=%s", symbol, e.__class__.__name__)
            return None
        if resp.status_code != 200:
            log.warning("analysis_http symbol=%s status=%s", symbol, resp.status_code)
            return None
        try:
            data = resp.json()
        except ValueError:
            log.warning("analysis_bad_json symbol=%s", symbol)
            return None
        if not isinstance(data, dict):
            log.warning("analysis_unexpected_body symbol=%s type=%s", symbol, type(data).__name__)
            return None
        return data

    def analyze_symbol(
        self,
        symbol: str,
        context: Optional[Union[StockSnapshot, Mapping[str, Any]]] = None,
    ) -> Optional[AnalysisResult]:
        payload = self.fetch_analysis(symbol)
        if payload is None:
            return None
        return analyze_payload(payload, context=context, symbol=symbol, settings=self.settings)
