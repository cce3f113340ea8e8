"""Source of actively traded symbols for a ranking pass."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

import requests

from options_ranker.config.loader import UniverseSettings

logger = logging.getLogger(__name__)

# Well known liquid names used when the screener is unreachable.
FALLBACK_SYMBOLS: List[str] = [
    "AAPL", "MSFT", "GOOGL", "AMZN", "META", "NVDA", "TSLA", "JPM", "BAC", "WFC",
    "V", "MA", "JNJ", "UNH", "PFE", "LLY", "WMT", "HD", "DIS", "MCD",
    "ORCL", "CRM", "ADBE", "NFLX", "AMD", "INTC", "BA", "CAT", "XOM", "CVX",
    "VZ", "T", "KO", "PEP", "PG", "COST", "ABBV", "TMO", "AVGO", "QCOM",
    "SBUX", "NKE", "GS", "MS", "C", "BLK", "SCHW", "AXP", "SPGI", "LOW",
]

REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://finance.yahoo.com",
}

JsonFetcher = Callable[[str, float], Mapping[str, Any]]


@dataclass(frozen=True)
class UniverseSnapshot:
    symbols: List[str]
    expires_at: datetime
    source: str


def normalise_symbols(symbols: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    cleaned: List[str] = []
    for symbol in symbols:
        normalized = str(symbol).upper().strip()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        cleaned.append(normalized)
    return cleaned


def _requests_fetcher(session: requests.Session) -> JsonFetcher:
    def fetch(url: str, timeout: float) -> Mapping[str, Any]:
        response = session.get(url, headers=REQUEST_HEADERS, timeout=timeout)
        response.raise_for_status()
        return response.json()

    return fetch


def screen_quotes(payload: Mapping[str, Any], settings: UniverseSettings) -> List[str]:
    """Extract tradeable tickers from a Yahoo screener payload."""

    results = (payload.get("finance") or {}).get("result") or [{}]
    quotes: Sequence[Mapping[str, Any]] = (results[0] or {}).get("quotes") or []

    selected: List[str] = []
    for quote in quotes:
        symbol = str(quote.get("symbol") or "")
        # Indices (^VIX) and currency pairs (EURUSD=X) have no equity options.
        if not symbol or "^" in symbol or "=" in symbol:
            continue
        if _raw(quote.get("regularMarketVolume")) <= settings.min_volume:
            continue
        if _raw(quote.get("regularMarketPrice")) <= settings.min_price:
            continue
        selected.append(symbol)
    return normalise_symbols(selected)[: settings.max_symbols]


def _raw(value: Any) -> float:
    # formatted=true payloads wrap numbers as {"raw": 123, "fmt": "123"}.
    if isinstance(value, Mapping):
        value = value.get("raw")
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class ActiveSymbolSource:
    """Most-active symbols with an instance-owned TTL cache.

    Falls back to the configured watchlist, then to ``FALLBACK_SYMBOLS``.
    Fallback lists are not cached so the screener is retried next call.
    """

    def __init__(
        self,
        settings: UniverseSettings,
        watchlist: Sequence[str] = (),
        fetcher: Optional[JsonFetcher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings
        self.watchlist = normalise_symbols(watchlist)
        self._fetch = fetcher or _requests_fetcher(requests.Session())
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._cached: Optional[UniverseSnapshot] = None

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self.settings.ttl_seconds)

    def get_symbols(self) -> UniverseSnapshot:
        now = self._clock()
        if self._cached is not None and now < self._cached.expires_at:
            logger.debug("Using cached symbol universe (%d symbols)", len(self._cached.symbols))
            return self._cached

        try:
            payload = self._fetch(self.settings.screener_url, self.settings.request_timeout_seconds)
            symbols = screen_quotes(payload, self.settings)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Failed to fetch active stocks from screener: %s", exc)
            symbols = []

        if symbols:
            logger.info("Fetched %d active stocks from screener", len(symbols))
            self._cached = UniverseSnapshot(symbols=symbols, expires_at=now + self.ttl, source="screener")
            return self._cached

        if self.watchlist:
            logger.info("Using configured watchlist as symbol universe")
            return UniverseSnapshot(symbols=list(self.watchlist), expires_at=now, source="watchlist")

        logger.info("Using default symbol list")
        return UniverseSnapshot(
            symbols=FALLBACK_SYMBOLS[: self.settings.max_symbols], expires_at=now, source="fallback"
        )

    def clear(self) -> None:
        self._cached = None


__all__ = [
    "ActiveSymbolSource",
    "FALLBACK_SYMBOLS",
    "UniverseSnapshot",
    "normalise_symbols",
    "screen_quotes",
]
