from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import requests

from options_ranker.config.loader import UniverseSettings
from options_ranker.scanner import FALLBACK_SYMBOLS, ActiveSymbolSource, screen_quotes

NOW = datetime(2025, 1, 6, 15, 0, tzinfo=timezone.utc)


def make_settings(**overrides) -> UniverseSettings:
    fields = {"screener_url": "https://screener.invalid/most_actives", "ttl_seconds": 3600, "max_symbols": 50}
    fields.update(overrides)
    return UniverseSettings(**fields)


def make_payload(*quotes):
    return {"finance": {"result": [{"quotes": list(quotes)}]}}


def quote(symbol, volume=5_000_000, price=100.0):
    return {"symbol": symbol, "regularMarketVolume": volume, "regularMarketPrice": price}


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def test_screen_quotes_filters_indices_currencies_and_thin_names():
    payload = make_payload(
        quote("AAPL"),
        quote("^VIX"),
        quote("EURUSD=X"),
        quote("THIN", volume=900_000),
        quote("PENNY", price=4.5),
        quote("MSFT", volume={"raw": 2_000_000, "fmt": "2M"}, price={"raw": 410.0, "fmt": "410.00"}),
    )

    assert screen_quotes(payload, make_settings()) == ["AAPL", "MSFT"]


def test_screen_quotes_caps_symbol_count():
    payload = make_payload(*(quote(f"SYM{index}") for index in range(10)))

    assert screen_quotes(payload, make_settings(max_symbols=3)) == ["SYM0", "SYM1", "SYM2"]


def test_screen_quotes_handles_empty_payload():
    assert screen_quotes({}, make_settings()) == []
    assert screen_quotes({"finance": {"result": []}}, make_settings()) == []


def test_screener_results_are_cached_until_ttl_expires():
    fetcher = MagicMock(return_value=make_payload(quote("AAPL"), quote("NVDA")))
    clock = Clock(NOW)
    source = ActiveSymbolSource(make_settings(), fetcher=fetcher, clock=clock)

    first = source.get_symbols()
    clock.now = NOW + timedelta(minutes=30)
    second = source.get_symbols()

    assert first.symbols == ["AAPL", "NVDA"]
    assert first.source == "screener"
    assert first.expires_at == NOW + timedelta(hours=1)
    assert second is first
    assert fetcher.call_count == 1

    clock.now = NOW + timedelta(hours=2)
    source.get_symbols()
    assert fetcher.call_count == 2
    fetcher.assert_called_with("https://screener.invalid/most_actives", 10.0)


def test_screener_failure_falls_back_to_watchlist_without_caching():
    fetcher = MagicMock(side_effect=requests.ConnectionError("offline"))
    source = ActiveSymbolSource(make_settings(), watchlist=["spy", "qqq", "SPY"], fetcher=fetcher, clock=lambda: NOW)

    first = source.get_symbols()
    second = source.get_symbols()

    assert first.symbols == ["SPY", "QQQ"]
    assert first.source == "watchlist"
    assert second.symbols == ["SPY", "QQQ"]
    assert fetcher.call_count == 2


def test_empty_screen_without_watchlist_uses_default_symbols():
    fetcher = MagicMock(return_value=make_payload(quote("^GSPC")))
    source = ActiveSymbolSource(make_settings(max_symbols=5), fetcher=fetcher, clock=lambda: NOW)

    snapshot = source.get_symbols()

    assert snapshot.source == "fallback"
    assert snapshot.symbols == FALLBACK_SYMBOLS[:5]


def test_malformed_response_falls_back():
    fetcher = MagicMock(side_effect=ValueError("Expecting value"))
    source = ActiveSymbolSource(make_settings(), watchlist=["IWM"], fetcher=fetcher, clock=lambda: NOW)

    assert source.get_symbols().symbols == ["IWM"]


def test_clear_forces_refetch():
    fetcher = MagicMock(return_value=make_payload(quote("AAPL")))
    source = ActiveSymbolSource(make_settings(), fetcher=fetcher, clock=lambda: NOW)

    source.get_symbols()
    source.clear()
    source.get_symbols()

    assert fetcher.call_count == 2
