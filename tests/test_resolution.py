import pytest

from stock_insight.models import AnalysisPayload, ExtractedFinancials, StockSnapshot
from stock_insight.resolution import (
    derived_change_percent,
    first_present,
    resolve_market_cap,
    resolve_values,
)


def test_first_present_keeps_zero():
    assert first_present(None, 0, 5) == 0
    assert first_present(None, None) is None


def test_context_beats_payload_beats_extracted(settings):
    payload = AnalysisPayload.from_raw({"price": 10.0, "changePercent": 1.0, "volume": 900})
    context = StockSnapshot.from_raw({"price": 12.0, "volume": 1000})
    extracted = ExtractedFinancials(price=8.0, change_percent=-3.0)

    resolved = resolve_values(payload, context, extracted, settings=settings)
    assert resolved.price == 12.0
    assert resolved.change_percent == 1.0
    assert resolved.volume == 1000


def test_extracted_used_when_nothing_else(settings):
    extracted = ExtractedFinancials(price=8.0, change_percent=-3.0)
    resolved = resolve_values(AnalysisPayload(), None, extracted, settings=settings)
    assert resolved.price == 8.0
    assert resolved.change_percent == -3.0
    assert resolved.volume is None


def test_zero_change_from_context_is_kept(settings):
    payload = AnalysisPayload.from_raw({"changePercent": 2.2})
    context = StockSnapshot.from_raw({"changePercent": 0})
    assert resolve_values(payload, context, settings=settings).change_percent == 0.0


def test_change_percent_derived_from_previous_close(settings):
    payload = AnalysisPayload.from_raw({"change": 2.0, "previousClose": 100.0})
    assert derived_change_percent(payload) == pytest.approx(2.0)

    extracted = ExtractedFinancials(change_percent=9.9)
    resolved = resolve_values(payload, None, extracted, settings=settings)
    assert resolved.change_percent == pytest.approx(2.0)


def test_change_percent_derived_from_price_without_change(settings):
    payload = AnalysisPayload.from_raw({"price": 102.0, "previousClose": 100.0})
    assert derived_change_percent(payload) == pytest.approx(2.0)
    assert resolve_values(payload, settings=settings).change_percent == pytest.approx(2.0)

    falling = AnalysisPayload.from_raw({"price": 95.0, "previousClose": 100.0})
    assert derived_change_percent(falling) == pytest.approx(-5.0)


def test_api_change_preferred_over_price_difference():
    payload = AnalysisPayload.from_raw({"price": 110.0, "change": 2.0, "previousClose": 100.0})
    assert derived_change_percent(payload) == pytest.approx(2.0)


def test_derived_change_needs_previous_close():
    assert derived_change_percent(AnalysisPayload.from_raw({"change": 2.0})) is None
    assert derived_change_percent(AnalysisPayload.from_raw({"change": 2.0, "previousClose": 0})) is None
    assert derived_change_percent(AnalysisPayload.from_raw({"price": 5.0, "previousClose": 0})) is None
    assert derived_change_percent(AnalysisPayload.from_raw({"previousClose": 100.0})) is None


def test_market_cap_context_first(settings):
    payload = AnalysisPayload.from_raw({"marketCap": 1500})
    context = StockSnapshot.from_raw({"marketCap": 500})
    assert resolve_market_cap(payload, context, ExtractedFinancials(), "XYZ", settings) == 500


def test_market_cap_non_positive_candidates_skipped(settings):
    payload = AnalysisPayload.from_raw({"marketCap": 1500})
    context = StockSnapshot.from_raw({"marketCap": 0})
    assert resolve_market_cap(payload, context, ExtractedFinancials(), "XYZ", settings) == 1500


def test_market_cap_suffixed_api_string(settings):
    payload = AnalysisPayload.from_raw({"marketCap": "2.5T"})
    value = resolve_market_cap(payload, None, ExtractedFinancials(), "XYZ", settings)
    assert value == pytest.approx(2_500_000)


def test_market_cap_from_text_then_overview(settings):
    mined = ExtractedFinancials(market_cap=3e12)
    assert resolve_market_cap(AnalysisPayload(), None, mined, "XYZ", settings) == pytest.approx(3_000_000)

    payload = AnalysisPayload.from_raw({"companyOverview": {"MarketCapitalization": "2000000000"}})
    assert resolve_market_cap(payload, None, ExtractedFinancials(), "XYZ", settings) == pytest.approx(2000)


def test_market_cap_defaults(settings):
    empty = AnalysisPayload()
    none = ExtractedFinancials()
    assert resolve_market_cap(empty, None, none, "AAPL", settings) == 2_000_000
    assert resolve_market_cap(empty, None, none, "XYZ", settings) == 10_000
    assert resolve_market_cap(empty, None, none, None, settings) == 10_000


def test_symbol_for_default_comes_from_context_then_payload(settings):
    payload = AnalysisPayload.from_raw({"symbol": "XYZ"})
    context = StockSnapshot.from_raw({"symbol": "msft"})
    assert resolve_values(payload, context, settings=settings).market_cap == 2_000_000
    assert resolve_values(payload, None, settings=settings).market_cap == 10_000
    assert resolve_values(payload, context, symbol="ZZZ", settings=settings).market_cap == 10_000
