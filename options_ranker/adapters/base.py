"""Core abstractions for options data adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, List, Optional, Sequence

import pandas as pd

from options_ranker.models import Quote


class AdapterError(Exception):
    """Base exception raised for adapter related failures."""


class RateLimitError(AdapterError):
    """Raised when a provider reports rate limiting errors."""


class DataUnavailable(AdapterError):
    """Raised when requested data is not available from a provider."""


class ProviderTimeout(AdapterError):
    """Raised when a provider call exceeds its time budget."""


@dataclass
class OptionsChain:
    """Raw provider snapshot for one symbol: quote, expirations and one chain.

    ``expirations`` may hold epoch seconds, dates, datetimes or ISO strings;
    the normalizer resolves the nearest one.
    """

    symbol: str
    expiration: date
    calls: pd.DataFrame
    puts: pd.DataFrame
    quote: Optional[Quote] = None
    expirations: List[Any] = field(default_factory=list)
    price_source: Optional[str] = None
    synthetic: bool = False


class OptionsDataAdapter(ABC):
    """Abstract base class for fetching options data from external providers."""

    synthetic = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable provider name."""

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """Return the latest underlying quote for a symbol."""

    @abstractmethod
    def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        """Return the options chain for a symbol and expiration date."""

    def get_expirations(self, symbol: str) -> Sequence[date]:
        """Return available expirations for a symbol."""

        raise NotImplementedError

    def get_snapshot(self, symbol: str) -> OptionsChain:
        """Return the quote plus the chain of the nearest upcoming expiration."""

        quote = self.get_quote(symbol)
        expirations = sorted(self.get_expirations(symbol))
        if not expirations:
            raise DataUnavailable(f"No option expirations listed for {symbol}")

        today = datetime.now(timezone.utc).date()
        upcoming = [expiration for expiration in expirations if expiration > today]
        # Only expired dates left: hand them through so the normalizer rejects the chain.
        nearest = (upcoming or expirations)[0]
        chain = self.get_chain(symbol, nearest)
        return replace(
            chain,
            quote=quote,
            expirations=upcoming or expirations,
            synthetic=chain.synthetic or self.synthetic,
        )


__all__ = [
    "AdapterError",
    "DataUnavailable",
    "OptionsChain",
    "OptionsDataAdapter",
    "ProviderTimeout",
    "RateLimitError",
]
