"""Clearly labelled demo data for when no live provider is reachable.

Every snapshot produced here has ``synthetic=True``. The flag is carried
through normalization into each ``Recommendation`` so nothing downstream can
mistake it for market data.
"""

from __future__ import annotations

import random
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Sequence

import pandas as pd

from options_ranker.models import Quote

from .base import OptionsChain, OptionsDataAdapter

# Reference prices for well known names; anything else gets a seeded price.
REFERENCE_PRICES: Dict[str, float] = {
    "AAPL": 258.45,
    "MSFT": 421.32,
    "GOOGL": 172.15,
    "AMZN": 185.67,
    "NVDA": 495.23,
    "TSLA": 248.91,
    "META": 512.34,
    "JPM": 189.45,
    "BAC": 38.72,
    "WFC": 62.15,
}

STRIKE_STEPS = 12


class SyntheticOptionsDataAdapter(OptionsDataAdapter):
    """Deterministic, seeded generator of quotes and option chains."""

    synthetic = True

    def __init__(
        self,
        seed: int = 7,
        days_to_expiry: int = 30,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._seed = seed
        self._days_to_expiry = days_to_expiry
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return "synthetic"

    def _rng(self, symbol: str) -> random.Random:
        # str hashes are salted per process; keep generation reproducible.
        return random.Random(self._seed * 1_000_003 + sum(ord(char) for char in symbol))

    def _base_price(self, symbol: str) -> float:
        if symbol in REFERENCE_PRICES:
            return REFERENCE_PRICES[symbol]
        return round(50 + self._rng(symbol).random() * 200, 2)

    def get_quote(self, symbol: str) -> Quote:
        price = self._base_price(symbol)
        rng = self._rng(symbol)
        return Quote(
            symbol=symbol,
            price=price,
            previous_close=round(price * (1 + rng.uniform(-0.02, 0.02)), 2),
            volume=rng.randint(1_000_000, 10_000_000),
        )

    def get_expirations(self, symbol: str) -> Sequence[date]:
        today = self._clock().date()
        return [today + timedelta(days=self._days_to_expiry)]

    def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        price = self._base_price(symbol)
        rng = self._rng(symbol)
        step = max(round(price * 0.01, 2), 0.5)
        strikes = [round(price * 0.9 + step * index * 2, 2) for index in range(STRIKE_STEPS)]
        days = max((expiration - self._clock().date()).days, 1)

        calls: List[Dict[str, float]] = []
        puts: List[Dict[str, float]] = []
        for strike in strikes:
            for option_type, rows in (("call", calls), ("put", puts)):
                intrinsic = max(price - strike, 0.0) if option_type == "call" else max(strike - price, 0.0)
                iv = rng.uniform(0.22, 0.55)
                time_value = price * iv * (days / 365) ** 0.5 * 0.4 * max(0.2, 1 - abs(strike - price) / price * 5)
                mid = round(intrinsic + time_value, 2)
                spread = max(round(mid * 0.04, 2), 0.01)
                rows.append(
                    {
                        "strike": strike,
                        "lastPrice": mid,
                        "bid": round(max(mid - spread, 0.0), 2),
                        "ask": round(mid + spread, 2),
                        "volume": rng.randint(100, 3000),
                        "openInterest": rng.randint(500, 6000),
                        "impliedVolatility": round(iv, 4),
                    }
                )

        return OptionsChain(
            symbol=symbol,
            expiration=expiration,
            calls=pd.DataFrame(calls),
            puts=pd.DataFrame(puts),
            expirations=[expiration],
            price_source=self.name,
            synthetic=True,
        )


__all__ = ["REFERENCE_PRICES", "SyntheticOptionsDataAdapter"]
