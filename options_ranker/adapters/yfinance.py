"""Adapter implementation backed by the public yfinance client."""

from __future__ import annotations

import logging
import math
import random
import threading
import time
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd
import yfinance as yf

from options_ranker.models import Quote

from .base import (
    AdapterError,
    DataUnavailable,
    OptionsChain,
    OptionsDataAdapter,
    ProviderTimeout,
    RateLimitError,
)

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = ("rate limit", "too many requests", "429")


def run_with_timeout(func: Callable[[], Any], timeout_seconds: float) -> Any:
    """Run a function with a timeout using threading.

    The worker thread is a daemon; on timeout it is abandoned, not killed.
    """
    result_container: List[Any] = []
    exception_container: List[BaseException] = []

    def wrapper() -> None:
        try:
            result_container.append(func())
        except Exception as exc:
            exception_container.append(exc)

    thread = threading.Thread(target=wrapper, daemon=True)
    thread.start()
    thread.join(timeout=timeout_seconds)

    if thread.is_alive():
        raise ProviderTimeout(f"Operation timed out after {timeout_seconds} seconds")

    if exception_container:
        raise exception_container[0]

    if result_container:
        return result_container[0]

    raise ProviderTimeout("Operation completed but returned no result")


def _is_rate_limited(exc: BaseException) -> bool:
    if "ratelimit" in type(exc).__name__.lower():
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


class YFinanceOptionsDataAdapter(OptionsDataAdapter):
    """Fetch quotes and options chains from Yahoo Finance via yfinance."""

    def __init__(
        self,
        ticker_factory: Callable[[str], yf.Ticker] | None = None,
        max_retries: int = 3,
        base_delay: float = 0.75,
        max_delay: float = 4.0,
        jitter: float = 0.3,
        timeout_seconds: float = 15.0,
    ) -> None:
        self._ticker_factory = ticker_factory or yf.Ticker
        self._max_retries = max(1, max_retries)
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._jitter = jitter
        self._timeout_seconds = timeout_seconds

    @property
    def name(self) -> str:
        return "yfinance"

    def get_quote(self, symbol: str) -> Quote:
        ticker = self._ticker_factory(symbol)
        fields: Dict[str, Any] = {}

        fast_info = self._retry(lambda: getattr(ticker, "fast_info", None), context=f"fetch fast info for {symbol}")
        getter = getattr(fast_info, "get", None)
        if callable(getter):
            fields["regularMarketPrice"] = self._first_valid(getter, ("last_price", "lastPrice", "regularMarketPrice"))
            fields["previousClose"] = self._first_valid(getter, ("previous_close", "previousClose", "regular_market_previous_close"))
            fields["volume"] = self._first_valid(getter, ("last_volume", "lastVolume"))

        if fields.get("regularMarketPrice") is None and fields.get("previousClose") is None:
            info = self._retry(lambda: ticker.info, context=f"fetch quote metadata for {symbol}")
            if isinstance(info, dict):
                fields["regularMarketPrice"] = self._first_valid(info.get, ("currentPrice", "regularMarketPrice"))
                fields["previousClose"] = self._first_valid(info.get, ("previousClose", "regularMarketPreviousClose"))
                fields["volume"] = fields.get("volume") or info.get("regularMarketVolume")

        quote = Quote(symbol=symbol, **fields)
        if quote.resolved_price is None:
            raise DataUnavailable(f"No usable price reported for {symbol}")
        return quote

    def get_expirations(self, symbol: str) -> Sequence[date]:
        ticker = self._ticker_factory(symbol)
        expirations = self._retry(lambda: ticker.options, context=f"fetch expirations for {symbol}")
        parsed: List[date] = []
        for raw in expirations or ():
            try:
                parsed.append(datetime.strptime(raw, "%Y-%m-%d").date())
            except ValueError:
                logger.debug("Ignoring unparseable expiration %r for %s", raw, symbol)
        return parsed

    def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        ticker = self._ticker_factory(symbol)
        expiration_str = expiration.strftime("%Y-%m-%d")
        option_chain = self._retry(
            lambda: ticker.option_chain(expiration_str),
            context=f"fetch options chain for {symbol} {expiration_str}",
        )

        calls_frame = getattr(option_chain, "calls", None)
        puts_frame = getattr(option_chain, "puts", None)
        calls = calls_frame.copy() if calls_frame is not None else pd.DataFrame()
        puts = puts_frame.copy() if puts_frame is not None else pd.DataFrame()

        return OptionsChain(
            symbol=symbol,
            expiration=expiration,
            calls=calls,
            puts=puts,
            expirations=[expiration],
            price_source=self.name,
        )

    def _retry(self, operation: Callable[[], Any], context: str) -> Any:
        last_error: Exception | None = None
        for attempt in range(self._max_retries):
            try:
                return run_with_timeout(operation, self._timeout_seconds)
            except ProviderTimeout as timeout_exc:
                last_error = timeout_exc
                logger.warning(
                    "Timeout after %ss while trying to %s (attempt %d/%d)",
                    self._timeout_seconds,
                    context,
                    attempt + 1,
                    self._max_retries,
                )
            except Exception as exc:  # yfinance raises generic errors
                last_error = exc
                if _is_rate_limited(exc) and attempt == self._max_retries - 1:
                    raise RateLimitError(f"Rate limited while trying to {context}: {exc}") from exc

            if attempt < self._max_retries - 1:
                self._apply_rate_limit_backoff(attempt)

        if isinstance(last_error, ProviderTimeout):
            raise last_error
        raise AdapterError(f"Failed to {context}: {last_error}") from last_error

    def _apply_rate_limit_backoff(self, attempt: int) -> None:
        delay = min(self._max_delay, self._base_delay * (1 + attempt))
        delay += random.uniform(0, self._jitter)
        time.sleep(delay)

    @staticmethod
    def _first_valid(getter: Callable[..., Any], keys: Sequence[str]) -> Optional[float]:
        for key in keys:
            try:
                value = getter(key)
            except (KeyError, AttributeError, TypeError):
                continue
            if value in (None, ""):
                continue
            try:
                number = float(value)
            except (TypeError, ValueError):
                continue
            if math.isfinite(number) and number > 0:
                return number
        return None


__all__ = ["ProviderTimeout", "YFinanceOptionsDataAdapter", "run_with_timeout"]
